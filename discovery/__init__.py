"""Discovery domain: deterministic ids, pure rules and the account-facing application."""

from .application import DiscoveryApplication
from .ids import create_deterministic_id, create_discovery_id

__all__ = ["DiscoveryApplication", "create_deterministic_id", "create_discovery_id"]
