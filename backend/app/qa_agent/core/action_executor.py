"""
Action Executor

Executes one scripted step against a live page.
Each step goes locating -> visible-wait -> acting, and either completes or
raises an ExecutionError subclass.
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, List, Optional, Tuple, Union

from playwright.async_api import Page, Locator
from playwright.async_api import Error as PlaywrightError
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from ..config import EngineConfig
from ..errors import ActionFailed, ActionTimeout, ElementNotFound, ExecutionError, UnknownAction
from .selector_resolver import SelectorResolver

logger = logging.getLogger(__name__)


Attempt = Tuple[str, Callable[[], Awaitable[None]]]


class StepAction(str, Enum):
    """Supported step actions"""
    TYPE = "type"
    CLICK = "click"
    SELECT = "select"
    CHECK = "check"
    UNCHECK = "uncheck"
    WAIT = "wait"
    HOVER = "hover"
    PRESS = "press"
    CLEAR = "clear"


@dataclass
class Step:
    """One scripted step of a test"""
    action: str
    target: Optional[str] = None
    value: Optional[Union[str, int, float]] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Step":
        return cls(
            action=str(data.get("action", "")).strip().lower(),
            target=data.get("target") or None,
            value=data.get("value"),
        )

    @property
    def text(self) -> str:
        return "" if self.value is None else str(self.value)


@dataclass
class StepReport:
    """What happened while executing a successful step"""
    action: str
    target: Optional[str]
    locator: Optional[str]
    attempt: str
    execution_time_ms: int


def fallback_locators(target: str) -> List[str]:
    """Locators derived from the raw target, tried after the resolved one"""
    quoted = target.replace("\\", "\\\\").replace('"', '\\"')
    return [
        f'[data-testid="{quoted}"]',
        f'button:has-text("{quoted}")',
        f'a:has-text("{quoted}")',
        f'input[placeholder*="{quoted}" i]',
    ]


class ActionExecutor:
    """
    Executes steps on a page.

    Features:
    - Id / role / raw locator resolution with a fallback cascade
    - Best-effort scroll and visibility wait before acting
    - Escalation ladders for type and click
    - Typed failures (ElementNotFound, UnknownAction, ActionFailed, ActionTimeout)
    """

    def __init__(
        self,
        page: Page,
        resolver: SelectorResolver,
        config: Optional[EngineConfig] = None
    ):
        """
        Initialize action executor.

        Args:
            page: Playwright page object
            resolver: Resolver built from the run's element records
            config: Engine configuration
        """
        self.page = page
        self.resolver = resolver
        self.config = config or EngineConfig()

        self._handlers: Dict[str, Callable[[Locator, Step], List[Attempt]]] = {
            StepAction.TYPE.value: self._type_attempts,
            StepAction.CLICK.value: self._click_attempts,
            StepAction.SELECT.value: self._select_attempts,
            StepAction.CHECK.value: lambda loc, step: [("check", lambda: loc.check(timeout=self.config.action_timeout_ms))],
            StepAction.UNCHECK.value: lambda loc, step: [("uncheck", lambda: loc.uncheck(timeout=self.config.action_timeout_ms))],
            StepAction.HOVER.value: lambda loc, step: [("hover", lambda: loc.hover(timeout=self.config.action_timeout_ms))],
            StepAction.CLEAR.value: lambda loc, step: [("clear", lambda: loc.clear(timeout=self.config.action_timeout_ms))],
            StepAction.PRESS.value: lambda loc, step: [("press", lambda: loc.press(step.text, timeout=self.config.action_timeout_ms))],
        }

    # ==================== Step Execution ====================

    async def execute(self, step: Union[Step, Dict[str, Any]]) -> StepReport:
        """
        Execute one step.

        Args:
            step: Step or its dict form

        Returns:
            StepReport for the completed step

        Raises:
            UnknownAction: action is not supported (raised before any browser call)
            ElementNotFound: no locator candidate matched
            ActionFailed / ActionTimeout: every attempt at the action failed
        """
        if isinstance(step, dict):
            step = Step.from_dict(step)

        start_time = datetime.utcnow()
        action = step.action

        if action == StepAction.WAIT.value:
            await self.page.wait_for_timeout(self._wait_ms(step))
            return self._report(step, None, "wait", start_time)

        if action == StepAction.PRESS.value and not step.target:
            await self._run_ladder(step, [("keyboard", lambda: self.page.keyboard.press(step.text))])
            return self._report(step, None, "keyboard", start_time)

        if action not in self._handlers:
            raise UnknownAction(action)

        if not step.target:
            raise ExecutionError(f"{action} step has no target")

        locator_string, locator = await self._locate(step.target)
        logger.info(f"Executing {action} on '{locator_string}' (target: '{step.target}')")

        await self._wait_visible(locator, locator_string)

        attempt = await self._run_ladder(step, self._handlers[action](locator, step))
        return self._report(step, locator_string, attempt, start_time)

    def _report(self, step: Step, locator: Optional[str], attempt: str, start_time: datetime) -> StepReport:
        return StepReport(
            action=step.action,
            target=step.target,
            locator=locator,
            attempt=attempt,
            execution_time_ms=int((datetime.utcnow() - start_time).total_seconds() * 1000),
        )

    def _wait_ms(self, step: Step) -> int:
        if step.value in (None, ""):
            return self.config.default_wait_ms
        try:
            return int(float(step.value))
        except (TypeError, ValueError):
            logger.warning(f"Invalid wait value '{step.value}', using default")
            return self.config.default_wait_ms

    # ==================== Locating ====================

    async def _locate(self, target: str) -> Tuple[str, Locator]:
        """
        Find the first locator candidate that matches anything.

        Candidates are the resolved locator followed by the fallbacks
        derived from the raw target. Invalid selectors count as misses.
        """
        resolved = self.resolver.resolve(target)
        candidates = [resolved]
        for candidate in fallback_locators(target):
            if candidate not in candidates:
                candidates.append(candidate)

        for candidate in candidates:
            try:
                locator = self.page.locator(candidate)
                if await locator.count() > 0:
                    if candidate != resolved:
                        logger.info(f"Located '{target}' with fallback {candidate}")
                    return candidate, locator.first
            except PlaywrightError as e:
                logger.debug(f"Locator {candidate} unusable: {e}")

        raise ElementNotFound(target, resolved)

    async def _wait_visible(self, locator: Locator, locator_string: str):
        """Scroll into view and wait for visibility, both best-effort"""
        try:
            await locator.scroll_into_view_if_needed(timeout=self.config.scroll_timeout_ms)
        except PlaywrightError as e:
            logger.debug(f"Scroll into view failed for {locator_string}: {e}")

        try:
            await locator.wait_for(state="visible", timeout=self.config.visible_timeout_ms)
        except PlaywrightError as e:
            logger.warning(f"Element {locator_string} not visible, acting anyway: {e}")

    # ==================== Ladders ====================

    async def _run_ladder(self, step: Step, attempts: List[Attempt]) -> str:
        """
        Run attempts in order until one succeeds.

        Returns:
            Name of the attempt that succeeded
        """
        last_error: Optional[Exception] = None

        for name, attempt in attempts:
            try:
                await attempt()
                return name
            except PlaywrightError as e:
                last_error = e
                logger.warning(f"Action {step.action} attempt '{name}' failed: {e}")

        target = step.target or "page"
        if isinstance(last_error, PlaywrightTimeoutError):
            raise ActionTimeout(step.action, target, last_error)
        raise ActionFailed(step.action, target, last_error)

    def _type_attempts(self, locator: Locator, step: Step) -> List[Attempt]:
        text = step.text

        async def fill():
            await locator.fill(text, timeout=self.config.fill_timeout_ms)

        async def focus_then_fill():
            await locator.click(force=True, timeout=self.config.action_timeout_ms)
            await self.page.wait_for_timeout(self.config.focus_pause_ms)
            await locator.fill(text, force=True, timeout=self.config.action_timeout_ms)

        async def focus_then_keyboard():
            await locator.click(force=True, timeout=self.config.action_timeout_ms)
            await self.page.keyboard.type(text, delay=self.config.keyboard_delay_ms)

        return [
            ("fill", fill),
            ("focus_fill", focus_then_fill),
            ("keyboard", focus_then_keyboard),
        ]

    def _click_attempts(self, locator: Locator, step: Step) -> List[Attempt]:
        return [
            ("click", lambda: locator.click(timeout=self.config.click_timeout_ms)),
            ("force_click", lambda: locator.click(force=True, timeout=self.config.action_timeout_ms)),
        ]

    def _select_attempts(self, locator: Locator, step: Step) -> List[Attempt]:
        return [("select", lambda: locator.select_option(step.text, timeout=self.config.action_timeout_ms))]
