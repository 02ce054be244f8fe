"""
Unit tests for ActionExecutor.

Tests locating, the escalation ladders and typed failures.
"""

import pytest
from pathlib import Path
from unittest.mock import Mock, AsyncMock
import sys

sys.path.insert(0, str(Path(__file__).parent.parent.parent / "app"))

from playwright.async_api import Error as PlaywrightError
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from qa_agent.config import EngineConfig
from qa_agent.core.action_executor import ActionExecutor, Step, StepAction, fallback_locators
from qa_agent.core.selector_resolver import SelectorResolver
from qa_agent.errors import ActionFailed, ActionTimeout, ElementNotFound, ExecutionError, UnknownAction


@pytest.fixture
def executor(mock_page, login_elements):
    return ActionExecutor(mock_page, SelectorResolver.from_elements(login_elements), EngineConfig())


class TestStep:
    """Test step parsing."""

    def test_from_dict(self):
        step = Step.from_dict({"action": " Click ", "target": "e2"})

        assert step.action == "click"
        assert step.target == "e2"
        assert step.value is None

    def test_numeric_value_text(self):
        assert Step(action="type", target="e0", value=42).text == "42"

    def test_known_actions(self):
        assert {a.value for a in StepAction} == {
            "type", "click", "select", "check", "uncheck", "wait", "hover", "press", "clear"
        }


class TestLocating:
    """Test the locator cascade."""

    @pytest.mark.asyncio
    async def test_resolved_locator_used(self, executor, mock_page):
        report = await executor.execute({"action": "click", "target": "e2"})

        mock_page.locator.assert_called_with('button:has-text("Sign in")')
        assert report.locator == 'button:has-text("Sign in")'

    @pytest.mark.asyncio
    async def test_fallback_when_resolved_misses(self, executor, mock_page, mock_locator):
        """Target-derived fallbacks are tried after the resolved locator."""
        miss = AsyncMock()
        miss.count = AsyncMock(return_value=0)
        mock_page.locator = Mock(side_effect=lambda sel: mock_locator if sel == 'button:has-text("Checkout")' else miss)

        report = await executor.execute({"action": "click", "target": "Checkout"})

        assert report.locator == 'button:has-text("Checkout")'
        tried = [c.args[0] for c in mock_page.locator.call_args_list]
        assert tried == ["Checkout", '[data-testid="Checkout"]', 'button:has-text("Checkout")']

    @pytest.mark.asyncio
    async def test_invalid_selector_counts_as_miss(self, executor, mock_page, mock_locator):
        broken = AsyncMock()
        broken.count = AsyncMock(side_effect=PlaywrightError("Unexpected token"))
        mock_page.locator = Mock(side_effect=lambda sel: broken if sel == "##bad" else mock_locator)

        report = await executor.execute({"action": "click", "target": "##bad"})

        assert report.locator == '[data-testid="##bad"]'

    @pytest.mark.asyncio
    async def test_element_not_found(self, executor, mock_locator):
        """Exhausted cascade names the target and resolved locator."""
        mock_locator.count = AsyncMock(return_value=0)

        with pytest.raises(ElementNotFound) as exc_info:
            await executor.execute({"action": "click", "target": "e99"})

        assert "e99" in str(exc_info.value)
        assert str(exc_info.value) == "Element not found: e99 (selector: e99)"
        mock_locator.click.assert_not_called()

    def test_fallback_locators(self):
        assert fallback_locators("Log in") == [
            '[data-testid="Log in"]',
            'button:has-text("Log in")',
            'a:has-text("Log in")',
            'input[placeholder*="Log in" i]',
        ]


class TestVisibleWait:
    """Test the best-effort visibility wait."""

    @pytest.mark.asyncio
    async def test_scrolls_and_waits(self, executor, mock_locator):
        await executor.execute({"action": "hover", "target": "e2"})

        mock_locator.scroll_into_view_if_needed.assert_awaited_once()
        mock_locator.wait_for.assert_awaited_once_with(state="visible", timeout=5000)

    @pytest.mark.asyncio
    async def test_visibility_timeout_ignored(self, executor, mock_locator):
        """The action still runs when the element never turns visible."""
        mock_locator.wait_for = AsyncMock(side_effect=PlaywrightTimeoutError("Timeout 5000ms exceeded."))
        mock_locator.scroll_into_view_if_needed = AsyncMock(side_effect=PlaywrightError("not attached"))

        report = await executor.execute({"action": "click", "target": "e2"})

        assert report.attempt == "click"
        mock_locator.click.assert_awaited_once()


class TestTypeLadder:
    """Test the type escalation ladder."""

    @pytest.mark.asyncio
    async def test_fill_first(self, executor, mock_locator):
        report = await executor.execute({"action": "type", "target": "e0", "value": "a@b.co"})

        assert report.attempt == "fill"
        mock_locator.fill.assert_awaited_once_with("a@b.co", timeout=3000)

    @pytest.mark.asyncio
    async def test_focus_then_fill(self, executor, mock_page, mock_locator):
        """A failed fill escalates to forced click, pause and forced fill."""
        mock_locator.fill = AsyncMock(side_effect=[PlaywrightTimeoutError("fill timed out"), None])

        report = await executor.execute({"action": "type", "target": "e0", "value": "a@b.co"})

        assert report.attempt == "focus_fill"
        mock_locator.click.assert_awaited_once_with(force=True, timeout=10000)
        mock_page.wait_for_timeout.assert_awaited_with(200)
        assert mock_locator.fill.call_args_list[1].kwargs["force"] is True

    @pytest.mark.asyncio
    async def test_keyboard_last(self, executor, mock_page, mock_locator):
        """Both fills failing ends with keyboard typing."""
        mock_locator.fill = AsyncMock(side_effect=PlaywrightError("not an input"))

        report = await executor.execute({"action": "type", "target": "e0", "value": "hello"})

        assert report.attempt == "keyboard"
        assert mock_locator.fill.await_count == 2
        mock_page.keyboard.type.assert_awaited_once_with("hello", delay=30)

    @pytest.mark.asyncio
    async def test_ladder_exhausted_by_timeout(self, executor, mock_page, mock_locator):
        mock_locator.fill = AsyncMock(side_effect=PlaywrightError("not an input"))
        mock_page.keyboard.type = AsyncMock(side_effect=PlaywrightTimeoutError("Timeout 10000ms exceeded."))

        with pytest.raises(ActionTimeout) as exc_info:
            await executor.execute({"action": "type", "target": "e0", "value": "x"})

        assert exc_info.value.action == "type"
        assert exc_info.value.target == "e0"

    @pytest.mark.asyncio
    async def test_ladder_exhausted_by_error(self, executor, mock_locator):
        mock_locator.fill = AsyncMock(side_effect=PlaywrightError("detached"))
        mock_locator.click = AsyncMock(side_effect=PlaywrightError("detached"))

        with pytest.raises(ActionFailed) as exc_info:
            await executor.execute({"action": "type", "target": "e0", "value": "x"})

        assert not isinstance(exc_info.value, ActionTimeout)


class TestClickLadder:
    """Test the click escalation ladder."""

    @pytest.mark.asyncio
    async def test_normal_click(self, executor, mock_locator):
        report = await executor.execute({"action": "click", "target": "e2"})

        assert report.attempt == "click"
        mock_locator.click.assert_awaited_once_with(timeout=5000)

    @pytest.mark.asyncio
    async def test_force_click(self, executor, mock_locator):
        """An intercepted click escalates to a forced click."""
        mock_locator.click = AsyncMock(side_effect=[PlaywrightTimeoutError("intercepted"), None])

        report = await executor.execute({"action": "click", "target": "e2"})

        assert report.attempt == "force_click"
        assert mock_locator.click.call_args_list[1].kwargs["force"] is True


class TestSingleAttemptActions:
    """Test select, check, uncheck, hover, clear and press."""

    @pytest.mark.asyncio
    async def test_select(self, executor, mock_locator):
        await executor.execute({"action": "select", "target": "e0", "value": "US"})

        mock_locator.select_option.assert_awaited_once_with("US", timeout=10000)

    @pytest.mark.asyncio
    @pytest.mark.parametrize("action", ["check", "uncheck", "hover", "clear"])
    async def test_simple_actions(self, executor, mock_locator, action):
        await executor.execute({"action": action, "target": "e0"})

        getattr(mock_locator, action).assert_awaited_once_with(timeout=10000)

    @pytest.mark.asyncio
    async def test_single_attempt_failure_wrapped(self, executor, mock_locator):
        mock_locator.check = AsyncMock(side_effect=PlaywrightError("not a checkbox"))

        with pytest.raises(ActionFailed):
            await executor.execute({"action": "check", "target": "e0"})

        assert mock_locator.check.await_count == 1

    @pytest.mark.asyncio
    async def test_press_on_element(self, executor, mock_locator):
        await executor.execute({"action": "press", "target": "e0", "value": "Enter"})

        mock_locator.press.assert_awaited_once_with("Enter", timeout=10000)

    @pytest.mark.asyncio
    async def test_press_on_page(self, executor, mock_page):
        """press without a target goes to the page keyboard."""
        report = await executor.execute({"action": "press", "value": "Escape"})

        mock_page.keyboard.press.assert_awaited_once_with("Escape")
        mock_page.locator.assert_not_called()
        assert report.locator is None


class TestWait:
    """Test the wait action."""

    @pytest.mark.asyncio
    async def test_wait_value(self, executor, mock_page):
        await executor.execute({"action": "wait", "value": 2500})

        mock_page.wait_for_timeout.assert_awaited_once_with(2500)
        mock_page.locator.assert_not_called()

    @pytest.mark.asyncio
    async def test_wait_default(self, executor, mock_page):
        await executor.execute({"action": "wait"})

        mock_page.wait_for_timeout.assert_awaited_once_with(1000)

    @pytest.mark.asyncio
    async def test_wait_string_value(self, executor, mock_page):
        await executor.execute({"action": "wait", "value": "750"})

        mock_page.wait_for_timeout.assert_awaited_once_with(750)


class TestUnknownAction:
    """Test unsupported actions."""

    @pytest.mark.asyncio
    async def test_unknown_before_browser(self, executor, mock_page):
        """Unknown actions fail before any browser call."""
        with pytest.raises(UnknownAction) as exc_info:
            await executor.execute({"action": "drag", "target": "e0"})

        assert str(exc_info.value) == "Unknown action: drag"
        mock_page.locator.assert_not_called()

    @pytest.mark.asyncio
    async def test_missing_target(self, executor, mock_page):
        with pytest.raises(ExecutionError):
            await executor.execute({"action": "click"})

        mock_page.locator.assert_not_called()
