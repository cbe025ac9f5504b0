"""Cross-domain reads bridging the spot and discovery applications."""

from .discovery_state import DiscoveryStateComposite
from .spot_access import SpotAccessComposite

__all__ = ["DiscoveryStateComposite", "SpotAccessComposite"]
