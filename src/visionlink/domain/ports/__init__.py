from .browsing_surface import BrowsingSurfacePort, ResourceListener
from .metadata import MetadataClientPort
from .page_probe import OutcomeCallback, PageProbePort
from .player import PlayerPort

__all__ = [
    "BrowsingSurfacePort",
    "MetadataClientPort",
    "OutcomeCallback",
    "PageProbePort",
    "PlayerPort",
    "ResourceListener",
]
