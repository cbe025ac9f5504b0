"""Closed vocabularies used across trails, spots and discoveries."""

from __future__ import annotations

from enum import Enum


class DiscoveryMode(str, Enum):
    FREE = "free"
    SEQUENCE = "sequence"


class PreviewMode(str, Enum):
    PREVIEW = "preview"
    HIDDEN = "hidden"


class SpotVisibility(str, Enum):
    HIDDEN = "hidden"
    PREVIEW = "preview"
    PUBLIC = "public"


class SpotSource(str, Enum):
    """Why a spot record is visible to the caller."""

    CREATED = "created"
    DISCOVERY = "discovery"
    PREVIEW = "preview"
    PUBLIC = "public"


class ClueSource(str, Enum):
    PREVIEW = "preview"
    SCAN_EVENT = "scanEvent"


class Role(str, Enum):
    USER = "user"
    CREATOR = "creator"
    ADMIN = "admin"


class Client(str, Enum):
    APP = "app"
    CREATOR = "creator"


class ContentVisibility(str, Enum):
    PRIVATE = "private"
    PUBLIC = "public"


class CompletionStatus(str, Enum):
    NOT_STARTED = "not_started"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
