"""Tests for PlaywrightBrowsingSurface."""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock

import pytest
from playwright.async_api import Error as PlaywrightError

from visionlink.domain.exceptions import PageLoadError
from visionlink.infrastructure.probing.playwright_surface import (
    PlaywrightBrowsingSurface,
)


# ------------------------------------------------------------------
# Helpers
# ------------------------------------------------------------------


def _mock_page(*, status: int | None = 200) -> AsyncMock:
    page = AsyncMock()
    if status is None:
        page.goto = AsyncMock(return_value=None)
    else:
        resp = MagicMock()
        resp.status = status
        page.goto = AsyncMock(return_value=resp)
    page.wait_for_function = AsyncMock()
    page.evaluate = AsyncMock(return_value={"video": "", "frames": []})
    page.is_closed = MagicMock(return_value=False)
    page.on = MagicMock()
    page.close = AsyncMock()
    return page


def _mock_context(page: AsyncMock) -> AsyncMock:
    context = AsyncMock()
    context.new_page = AsyncMock(return_value=page)
    context.close = AsyncMock()
    return context


# ------------------------------------------------------------------
# load_url
# ------------------------------------------------------------------


class TestLoadUrl:
    async def test_navigates_and_waits_for_load(self) -> None:
        page = _mock_page()
        surface = PlaywrightBrowsingSurface(_mock_context(page), navigation_timeout_ms=5_000)

        await surface.load_url("https://site.test/ep1")

        page.goto.assert_awaited_once_with(
            "https://site.test/ep1", wait_until="load", timeout=5_000
        )
        page.wait_for_function.assert_awaited_once()
        assert surface.current_url == "https://site.test/ep1"

    async def test_registers_request_hook_once(self) -> None:
        page = _mock_page()
        surface = PlaywrightBrowsingSurface(_mock_context(page))

        await surface.load_url("https://site.test/1")
        await surface.load_url("https://site.test/2")

        page.on.assert_called_once()
        assert page.on.call_args.args[0] == "request"

    @pytest.mark.parametrize("status", [404, 500, 503])
    async def test_error_status_raises(self, status: int) -> None:
        surface = PlaywrightBrowsingSurface(_mock_context(_mock_page(status=status)))
        with pytest.raises(PageLoadError, match=str(status)):
            await surface.load_url("https://site.test/x")

    async def test_challenge_status_is_tolerated(self) -> None:
        page = _mock_page(status=403)
        surface = PlaywrightBrowsingSurface(_mock_context(page))
        await surface.load_url("https://site.test/x")
        page.wait_for_function.assert_awaited_once()

    async def test_navigation_failure_raises(self) -> None:
        page = _mock_page()
        page.goto = AsyncMock(side_effect=PlaywrightError("net::ERR_NAME_NOT_RESOLVED"))
        surface = PlaywrightBrowsingSurface(_mock_context(page))
        with pytest.raises(PageLoadError):
            await surface.load_url("https://nowhere.test")

    async def test_cloudflare_wait_timeout_is_ignored(self) -> None:
        page = _mock_page()
        page.wait_for_function = AsyncMock(side_effect=PlaywrightError("Timeout"))
        surface = PlaywrightBrowsingSurface(_mock_context(page))
        await surface.load_url("https://site.test/x")  # no error


# ------------------------------------------------------------------
# Request listener
# ------------------------------------------------------------------


class TestRequestListener:
    async def test_forwards_request_urls(self) -> None:
        page = _mock_page()
        surface = PlaywrightBrowsingSurface(_mock_context(page))
        seen: list[str] = []
        surface.on_resource_requested(seen.append)
        await surface.load_url("https://site.test/x")

        handler = page.on.call_args.args[1]
        request = MagicMock()
        request.url = "https://cdn.test/a.m3u8"
        handler(request)

        assert seen == ["https://cdn.test/a.m3u8"]

    async def test_detached_listener_receives_nothing(self) -> None:
        page = _mock_page()
        surface = PlaywrightBrowsingSurface(_mock_context(page))
        seen: list[str] = []
        surface.on_resource_requested(seen.append)
        await surface.load_url("https://site.test/x")
        surface.on_resource_requested(None)

        request = MagicMock()
        request.url = "https://cdn.test/a.m3u8"
        page.on.call_args.args[1](request)

        assert seen == []


# ------------------------------------------------------------------
# evaluate / close
# ------------------------------------------------------------------


class TestEvaluateAndClose:
    async def test_evaluate_script_delegates(self) -> None:
        page = _mock_page()
        surface = PlaywrightBrowsingSurface(_mock_context(page))
        result = await surface.evaluate_script("() => 1")
        page.evaluate.assert_awaited_once_with("() => 1")
        assert result == {"video": "", "frames": []}

    async def test_close_releases_page_and_context(self) -> None:
        page = _mock_page()
        context = _mock_context(page)
        surface = PlaywrightBrowsingSurface(context)
        await surface.load_url("https://site.test/x")

        await surface.close()

        page.close.assert_awaited_once()
        context.close.assert_awaited_once()
        assert surface.current_url is None

    async def test_close_is_idempotent(self) -> None:
        context = _mock_context(_mock_page())
        surface = PlaywrightBrowsingSurface(context)
        await surface.close()
        await surface.close()
        assert context.close.await_count == 2
