"""Playwright implementation of the browsing surface."""

from __future__ import annotations

from typing import Any

import structlog
from playwright.async_api import BrowserContext, Page, Request
from playwright.async_api import Error as PlaywrightError

from visionlink.domain.exceptions import PageLoadError
from visionlink.domain.ports.browsing_surface import ResourceListener

log = structlog.get_logger(__name__)

_CF_TIMEOUT_MS = 10_000

# 403 is excluded: Cloudflare challenges answer 403 and then clear.
_FAILED_STATUS_MIN = 400
_CHALLENGE_STATUS = 403


class PlaywrightBrowsingSurface:
    """A single page inside its own BrowserContext.

    Owns the context: ``close()`` releases both.
    """

    def __init__(
        self,
        context: BrowserContext,
        *,
        navigation_timeout_ms: int = 30_000,
    ) -> None:
        self._context = context
        self._navigation_timeout_ms = navigation_timeout_ms
        self._page: Page | None = None
        self._listener: ResourceListener | None = None
        self._current_url: str | None = None

    @property
    def current_url(self) -> str | None:
        return self._current_url

    def on_resource_requested(self, listener: ResourceListener | None) -> None:
        self._listener = listener

    async def _ensure_page(self) -> Page:
        if self._page is None or self._page.is_closed():
            self._page = await self._context.new_page()
            self._page.on("request", self._handle_request)
        return self._page

    def _handle_request(self, request: Request) -> None:
        listener = self._listener
        if listener is not None:
            listener(request.url)

    async def load_url(self, url: str) -> None:
        """Navigate to *url* and wait for the ``load`` event.

        Waits for a potential Cloudflare challenge afterwards (best
        effort). Raises ``PageLoadError`` on navigation failure or an
        error status.
        """
        page = await self._ensure_page()
        self._current_url = url
        try:
            resp = await page.goto(
                url,
                wait_until="load",
                timeout=self._navigation_timeout_ms,
            )
        except PlaywrightError as exc:
            raise PageLoadError(f"{url}: {exc.message}") from exc

        if (
            resp is not None
            and resp.status >= _FAILED_STATUS_MIN
            and resp.status != _CHALLENGE_STATUS
        ):
            log.warning("surface_navigate_error", url=url, status=resp.status)
            raise PageLoadError(f"{url}: HTTP {resp.status}")

        await self._wait_for_cloudflare(page)

    async def _wait_for_cloudflare(self, page: Page) -> bool:
        """Wait until the title no longer shows the CF challenge marker."""
        try:
            await page.wait_for_function(
                "() => !document.title.includes('Just a moment')",
                timeout=_CF_TIMEOUT_MS,
            )
            return True
        except PlaywrightError:
            log.debug("surface_cloudflare_wait_timeout", url=self._current_url)
            return False

    async def evaluate_script(self, script: str) -> Any:
        page = await self._ensure_page()
        return await page.evaluate(script)

    async def close(self) -> None:
        """Close page and context. Idempotent."""
        self._listener = None
        if self._page is not None and not self._page.is_closed():
            try:
                await self._page.close()
            except PlaywrightError:
                log.debug("surface_page_close_error", exc_info=True)
        self._page = None
        try:
            await self._context.close()
        except PlaywrightError:
            log.debug("surface_context_close_error", exc_info=True)
        self._current_url = None
