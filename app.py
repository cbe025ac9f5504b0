"""Flask application factory: builds the stores, applications and composites once per process."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

from flask import Flask, current_app

from composites import DiscoveryStateComposite, SpotAccessComposite
from config import load_config
from content_filter import ContentFilter
from contracts import Discovery, DiscoveryContent, DiscoveryProfile, DiscoveryReaction, Spot, Trail
from discovery import DiscoveryApplication
from extensions import db
from spots import SpotApplication
from stores import Store, create_store
from trails import TrailApplication

EXTENSION_KEY = "trail_discovery"

CONTAINERS = {
    "trails": Trail,
    "spots": Spot,
    "discoveries": Discovery,
    "discovery_profiles": DiscoveryProfile,
    "discovery_contents": DiscoveryContent,
    "discovery_reactions": DiscoveryReaction,
}


@dataclass
class DiscoveryCore:
    stores: Dict[str, Store]
    trails: TrailApplication
    spots: SpotApplication
    discovery: DiscoveryApplication
    spot_access: SpotAccessComposite
    discovery_state: DiscoveryStateComposite


def build_core(settings: Mapping[str, Any]) -> DiscoveryCore:
    """Wire every collaborator from ``settings`` (a Flask config or plain dict)."""
    store_type = settings.get("TRAIL_STORE_TYPE", "memory")
    stores = {
        name: create_store(store_type, name, entity_cls, base_dir=settings.get("TRAIL_JSON_STORE_DIR"))
        for name, entity_cls in CONTAINERS.items()
    }
    trails = TrailApplication(stores["trails"])
    spots = SpotApplication(stores["spots"])
    discovery = DiscoveryApplication(
        stores["discoveries"],
        stores["discovery_profiles"],
        stores["discovery_contents"],
        stores["discovery_reactions"],
        trails,
        spots,
        content_filter=ContentFilter() if settings.get("CONTENT_FILTER_ENABLED", True) else None,
        default_trail_id=settings.get("DEFAULT_DISCOVERY_TRAIL_ID"),
        default_map_radius_m=settings.get("DEFAULT_MAP_RADIUS_METERS", 5000),
        default_snap_range_m=settings.get("DEFAULT_SNAP_RANGE_METERS", 1000),
    )
    return DiscoveryCore(
        stores=stores,
        trails=trails,
        spots=spots,
        discovery=discovery,
        spot_access=SpotAccessComposite(discovery, spots, trails),
        discovery_state=DiscoveryStateComposite(discovery, spots, trails),
    )


def create_app(config_overrides: Optional[Mapping[str, Any]] = None) -> Flask:
    app = Flask(__name__)
    app.config.update(load_config())
    if config_overrides:
        app.config.update(config_overrides)

    uri = app.config["SQLALCHEMY_DATABASE_URI"]
    if app.config["TRAIL_STORE_TYPE"] == "sql" and uri.startswith("sqlite:///"):
        Path(uri[len("sqlite:///"):]).parent.mkdir(parents=True, exist_ok=True)

    db.init_app(app)
    if app.config["TRAIL_STORE_TYPE"] == "sql":
        with app.app_context():
            db.create_all()

    app.extensions[EXTENSION_KEY] = build_core(app.config)
    app.logger.info("Discovery core ready (store=%s)", app.config["TRAIL_STORE_TYPE"])
    return app


def get_core(app: Optional[Flask] = None) -> DiscoveryCore:
    return (app or current_app).extensions[EXTENSION_KEY]
