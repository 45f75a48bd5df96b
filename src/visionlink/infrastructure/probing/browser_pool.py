"""Shared Chromium browser for all probes.

One Chromium process serves every resolution session. Each probe gets
its own ``BrowserContext`` (cookies, storage, cache) so sessions never
see each other's state, while sharing the same underlying browser.

Concurrent ``warmup()`` calls are serialised by an asyncio lock: the
first caller launches Chromium, later callers wait and receive the same
instance.
"""

from __future__ import annotations

import asyncio

import structlog
from playwright.async_api import (
    Browser,
    BrowserContext,
    Playwright,
    Route,
    async_playwright,
)

from .matchers import DEFAULT_USER_AGENT
from .playwright_surface import PlaywrightBrowsingSurface

log = structlog.get_logger(__name__)

# Media must stay unblocked: the probe sniffs video requests.
_BLOCKED_RESOURCE_TYPES = frozenset({"image", "font"})


async def _block_resources(route: Route) -> None:
    """Abort requests for heavy resource types."""
    if route.request.resource_type in _BLOCKED_RESOURCE_TYPES:
        await route.abort()
    else:
        await route.continue_()


class BrowserPool:
    """Lazily launched Chromium handing out isolated browsing surfaces.

    Usage::

        pool = BrowserPool(headless=True)
        surface = await pool.new_surface()
        ...
        await pool.cleanup()
    """

    def __init__(
        self,
        *,
        headless: bool = True,
        navigation_timeout_ms: int = 30_000,
        user_agent: str = DEFAULT_USER_AGENT,
        stealth: bool = False,
        block_heavy_resources: bool = True,
    ) -> None:
        self._headless = headless
        self._navigation_timeout_ms = navigation_timeout_ms
        self._user_agent = user_agent
        self._stealth = stealth
        self._block_heavy_resources = block_heavy_resources
        self._pw: Playwright | None = None
        self._browser: Browser | None = None
        self._lock = asyncio.Lock()

    @property
    def is_running(self) -> bool:
        """Whether the browser is currently connected."""
        return self._browser is not None and self._browser.is_connected()

    async def warmup(self) -> Browser:
        """Ensure Chromium is running, launching it if needed.

        If the browser has disconnected (crash, etc.), it is relaunched.
        """
        if self._browser is not None and self._browser.is_connected():
            return self._browser

        async with self._lock:
            # Double-check after acquiring lock
            if self._browser is not None and self._browser.is_connected():
                return self._browser

            # Clean up stale state if browser crashed
            if self._pw is not None:
                try:
                    await self._pw.stop()
                except Exception:  # noqa: BLE001
                    log.debug("browser_pool_stale_pw_stop_error", exc_info=True)
                self._pw = None
                self._browser = None

            self._pw = await async_playwright().start()
            self._browser = await self._pw.chromium.launch(headless=self._headless)
            log.info("browser_pool_launched", headless=self._headless)
            return self._browser

    async def _new_context(self) -> BrowserContext:
        browser = await self.warmup()
        context = await browser.new_context(
            user_agent=self._user_agent,
            java_script_enabled=True,
            viewport={"width": 412, "height": 915},
            is_mobile=True,
            has_touch=True,
        )
        if self._stealth:
            from playwright_stealth import Stealth

            await Stealth().apply_stealth_async(context)
        if self._block_heavy_resources:
            await context.route("**/*", _block_resources)
        return context

    async def new_surface(self) -> PlaywrightBrowsingSurface:
        """Create a browsing surface in a fresh, isolated context."""
        context = await self._new_context()
        log.debug("browser_pool_surface_created", stealth=self._stealth)
        return PlaywrightBrowsingSurface(
            context,
            navigation_timeout_ms=self._navigation_timeout_ms,
        )

    async def cleanup(self) -> None:
        """Close the browser and Playwright instance."""
        if self._browser is not None:
            try:
                await self._browser.close()
            except Exception:  # noqa: BLE001
                log.warning("browser_pool_close_error", exc_info=True)
            self._browser = None
        if self._pw is not None:
            try:
                await self._pw.stop()
            except Exception:  # noqa: BLE001
                log.warning("browser_pool_pw_stop_error", exc_info=True)
            self._pw = None
        log.info("browser_pool_cleaned_up")
