"""
Unit tests for ReadinessDetector.

Tests layer ordering, failure containment and framework detection.
"""

import pytest
from pathlib import Path
from unittest.mock import AsyncMock
import sys

sys.path.insert(0, str(Path(__file__).parent.parent.parent / "app"))

from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from qa_agent.config import EngineConfig
from qa_agent.core.readiness import (
    ReadinessDetector, CONTENT_READY_JS, FRAMEWORK_SIGNATURES, FREEZE_ANIMATIONS_CSS
)


ALL_LAYERS = ["network_idle", "content_ready", "settle", "lazy_scroll", "freeze_animations", "final_settle"]


class TestWaitUntilReady:
    """Test the layered readiness wait."""

    @pytest.mark.asyncio
    async def test_all_layers_complete(self, mock_page):
        """Every layer runs in order on a well-behaved page."""
        report = await ReadinessDetector().wait_until_ready(mock_page)

        assert report.completed == ALL_LAYERS
        assert report.failed == []
        assert report.fully_ready

    @pytest.mark.asyncio
    async def test_uses_configured_bounds(self, mock_page):
        config = EngineConfig(network_idle_timeout_ms=1234, content_wait_timeout_ms=4321)

        await ReadinessDetector(config).wait_until_ready(mock_page)

        mock_page.wait_for_load_state.assert_awaited_once_with("networkidle", timeout=1234)
        assert mock_page.wait_for_function.call_args.kwargs["timeout"] == 4321
        assert mock_page.wait_for_function.call_args.kwargs["arg"]["minBytes"] == 2000

    @pytest.mark.asyncio
    async def test_network_idle_timeout_swallowed(self, mock_page):
        """A page that never goes idle still runs the remaining layers."""
        mock_page.wait_for_load_state = AsyncMock(
            side_effect=PlaywrightTimeoutError("Timeout 5000ms exceeded.")
        )

        report = await ReadinessDetector().wait_until_ready(mock_page)

        assert report.failed == ["network_idle"]
        assert report.completed == ALL_LAYERS[1:]
        assert not report.fully_ready

    @pytest.mark.asyncio
    async def test_every_layer_failing_never_raises(self, mock_page):
        """wait_until_ready never raises, even if nothing works."""
        error = RuntimeError("page crashed")
        mock_page.wait_for_load_state = AsyncMock(side_effect=error)
        mock_page.wait_for_function = AsyncMock(side_effect=error)
        mock_page.wait_for_timeout = AsyncMock(side_effect=error)
        mock_page.evaluate = AsyncMock(side_effect=error)
        mock_page.add_style_tag = AsyncMock(side_effect=error)

        report = await ReadinessDetector().wait_until_ready(mock_page)

        assert report.completed == []
        assert report.failed == ALL_LAYERS
        assert report.framework is None

    @pytest.mark.asyncio
    async def test_freezes_animations(self, mock_page):
        await ReadinessDetector().wait_until_ready(mock_page)

        mock_page.add_style_tag.assert_awaited_once_with(content=FREEZE_ANIMATIONS_CSS)

    @pytest.mark.asyncio
    async def test_lazy_scroll_returns_to_top(self, mock_page):
        """The synthetic scroll goes down by the configured fraction and back."""
        config = EngineConfig(scroll_fraction=0.25, scroll_pause_ms=50)

        await ReadinessDetector(config).wait_until_ready(mock_page)

        scroll_calls = [c for c in mock_page.evaluate.call_args_list if "scrollTo" in c.args[0]]
        assert len(scroll_calls) == 2
        assert scroll_calls[0].args[1] == 0.25
        assert "scrollTo(0, 0)" in scroll_calls[1].args[0]


class TestDetectFramework:
    """Test SPA framework detection."""

    @pytest.mark.asyncio
    async def test_detected(self, mock_page):
        mock_page.evaluate = AsyncMock(return_value="vue")

        framework = await ReadinessDetector().detect_framework(mock_page)

        assert framework == "vue"
        signatures = mock_page.evaluate.call_args.args[1]
        assert [name for name, _ in signatures] == list(FRAMEWORK_SIGNATURES)

    @pytest.mark.asyncio
    async def test_plain_page(self, mock_page):
        mock_page.evaluate = AsyncMock(return_value=None)

        assert await ReadinessDetector().detect_framework(mock_page) is None

    @pytest.mark.asyncio
    async def test_reported_on_readiness(self, mock_page):
        mock_page.evaluate = AsyncMock(return_value="react")

        report = await ReadinessDetector().wait_until_ready(mock_page)

        assert report.framework == "react"


class TestContentReadyArgs:
    """Test the argument handed to the content-ready script."""

    def test_covers_every_signature(self):
        args = ReadinessDetector(EngineConfig(content_min_bytes=512)).content_ready_args()

        assert "__NEXT_DATA__" in args["globals"]
        assert "[data-reactroot]" in args["markers"]
        assert "[role='progressbar']" in args["loaders"]
        assert args["minBytes"] == 512

    def test_signals_are_alternatives(self):
        """Each signal ends the wait on its own."""
        assert "hasGlobal || hasMarker || !loaderVisible || bodySize > minBytes" in CONTENT_READY_JS
