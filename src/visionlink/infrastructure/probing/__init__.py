from .browser_pool import BrowserPool
from .page_probe import OutcomeLatch, PageProbe
from .playwright_surface import PlaywrightBrowsingSurface

__all__ = [
    "BrowserPool",
    "OutcomeLatch",
    "PageProbe",
    "PlaywrightBrowsingSurface",
]
