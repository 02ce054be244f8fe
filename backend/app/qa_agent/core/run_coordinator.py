"""
Run Coordinator

Owns the browser for one run and sequences discovery or execution.

Discovery (inspect): one context, navigate, wait for readiness, scan.
Errors propagate to the caller.

Execution (execute): one fresh context per test, steps in order, screenshots
before and after (or on error). A failing test never aborts its siblings.
"""

import logging
import re
import time
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from typing import Any, AsyncIterator, Callable, Dict, List, Optional

from playwright.async_api import Browser, BrowserContext, Page, async_playwright
from playwright.async_api import Error as PlaywrightError

from ..artifacts import LocalScreenshotStore, ScreenshotStore
from ..config import EngineConfig
from ..errors import NavigationFailure, describe_error
from ..explorer.element_scanner import ElementScanner, PageInspection
from .action_executor import ActionExecutor
from .readiness import ReadinessDetector
from .selector_resolver import SelectorResolver

logger = logging.getLogger(__name__)


HIDE_WEBDRIVER_JS = "Object.defineProperty(navigator, 'webdriver', { get: () => undefined });"

EXTRA_HEADERS = {
    "Accept-Language": "en-US,en;q=0.9",
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,image/webp,*/*;q=0.8",
}

BODY_SIZE_JS = "() => (document.body && document.body.innerHTML || '').length"


@asynccontextmanager
async def launch_browser(config: EngineConfig) -> AsyncIterator[Browser]:
    """Start Playwright and Chromium, and always shut both down"""
    playwright = await async_playwright().start()
    browser = None
    try:
        browser = await playwright.chromium.launch(
            headless=config.headless,
            args=config.browser_args,
        )
        logger.info("Browser launched")
        yield browser
    finally:
        if browser:
            try:
                await browser.close()
                logger.info("Browser closed")
            except Exception as e:
                logger.warning(f"Browser close error: {e}")
        try:
            await playwright.stop()
        except Exception as e:
            logger.warning(f"Playwright stop error: {e}")


@dataclass
class ExecutionResult:
    """Outcome of one test"""
    test: Dict[str, Any]
    status: str
    screenshots: List[str] = field(default_factory=list)
    error: Optional[str] = None

    @property
    def passed(self) -> bool:
        return self.status == "pass"

    def to_dict(self) -> Dict[str, Any]:
        return {
            **self.test,
            "status": self.status,
            "screenshots": list(self.screenshots),
            "error": self.error,
        }


def _as_dict(record: Any) -> Dict[str, Any]:
    if isinstance(record, dict):
        return record
    if hasattr(record, "model_dump"):
        return record.model_dump(mode="json", by_alias=True)
    return dict(record)


def _safe_name(value: str) -> str:
    return re.sub(r"[^\w.-]", "_", value) or "run"


class RunCoordinator:
    """
    Sequences discovery and execution over a single browser.

    Features:
    - Acquire-once / release-always browser lifecycle
    - Navigation retries with a domcontentloaded fallback
    - Fresh context per test
    - Before / after / error screenshots
    """

    def __init__(
        self,
        config: Optional[EngineConfig] = None,
        screenshot_store: Optional[ScreenshotStore] = None,
        browser_factory: Optional[Callable[[EngineConfig], Any]] = None
    ):
        """
        Initialize run coordinator.

        Args:
            config: Engine configuration
            screenshot_store: Where execution screenshots go
            browser_factory: Async context manager factory yielding a Browser
        """
        self.config = config or EngineConfig()
        self.screenshot_store = screenshot_store or LocalScreenshotStore(
            self.config.screenshot_dir, self.config.screenshot_url_prefix
        )
        self.browser_factory = browser_factory or launch_browser
        self.readiness = ReadinessDetector(self.config)
        self.scanner = ElementScanner(self.config)

    # ==================== Discovery ====================

    async def inspect(self, url: str) -> PageInspection:
        """
        Discover the interactive elements of a page.

        Raises:
            NavigationFailure: page is unreachable, blocked or empty
        """
        logger.info(f"Inspecting {url}")
        async with self.browser_factory(self.config) as browser:
            context = await self._new_context(browser)
            try:
                page = await context.new_page()
                report = await self._open(page, url)
                inspection = await self.scanner.inspect(page, url, framework=report.framework)
                logger.info(
                    f"Inspection of {url} found {len(inspection.elements)} elements "
                    f"(page type: {inspection.page_type})"
                )
                return inspection
            finally:
                await self._close_context(context)

    # ==================== Execution ====================

    async def execute(
        self,
        url: str,
        tests: List[Any],
        elements: List[Any],
        run_id: str
    ) -> List[ExecutionResult]:
        """
        Execute tests against a page, one after another.

        Args:
            url: Page every test starts from
            tests: Test records, each with a 'steps' list
            elements: Element records from discovery
            run_id: Groups the run's screenshots

        Returns:
            One ExecutionResult per test, in input order
        """
        resolver = SelectorResolver.from_elements(elements)
        results = []

        async with self.browser_factory(self.config) as browser:
            for index, test in enumerate(tests):
                test = _as_dict(test)
                result = await self._execute_test(browser, url, test, index, run_id, resolver)
                results.append(result)

        passed = sum(1 for r in results if r.passed)
        logger.info(f"Run {run_id} complete: {passed}/{len(results)} passed")
        return results

    async def execute_run(self, test_run: Any) -> List[ExecutionResult]:
        """Execute a stored test run record"""
        run = _as_dict(test_run)
        page_data = run.get("pageData") or run.get("page_data") or {}
        return await self.execute(
            url=run["url"],
            tests=run.get("tests") or [],
            elements=page_data.get("elements") or [],
            run_id=str(run.get("id") or "run"),
        )

    async def _execute_test(
        self,
        browser: Browser,
        url: str,
        test: Dict[str, Any],
        index: int,
        run_id: str,
        resolver: SelectorResolver
    ) -> ExecutionResult:
        test_id = str(test.get("id") or f"test{index}")
        name = test.get("name") or test_id
        screenshots: List[str] = []
        context: Optional[BrowserContext] = None
        page: Optional[Page] = None

        logger.info(f"Running test '{name}'")
        try:
            context = await self._new_context(browser)
            page = await context.new_page()
            await self._open_for_steps(page, url)

            screenshots.append(await self._capture(page, run_id, test_id, "before"))

            executor = ActionExecutor(page, resolver, self.config)
            for step_number, step in enumerate(test.get("steps") or []):
                if step_number:
                    await page.wait_for_timeout(self.config.step_pause_ms)
                await executor.execute(step)

            screenshots.append(await self._capture(page, run_id, test_id, "after"))
            logger.info(f"Test '{name}' passed")
            return ExecutionResult(test=test, status="pass", screenshots=screenshots)

        except Exception as e:
            error = describe_error(e)
            logger.warning(f"Test '{name}' failed: {error}")
            if page:
                try:
                    screenshots.append(await self._capture(page, run_id, test_id, "error"))
                except Exception as shot_error:
                    logger.warning(f"Error screenshot failed for '{name}': {shot_error}")
            return ExecutionResult(test=test, status="fail", screenshots=screenshots, error=error)

        finally:
            if context:
                await self._close_context(context)

    # ==================== Page Handling ====================

    async def _new_context(self, browser: Browser) -> BrowserContext:
        context = await browser.new_context(
            viewport={"width": self.config.viewport_width, "height": self.config.viewport_height},
            user_agent=self.config.user_agent,
            locale=self.config.locale,
            timezone_id=self.config.timezone_id,
            extra_http_headers=EXTRA_HEADERS,
        )
        await context.add_init_script(HIDE_WEBDRIVER_JS)
        return context

    async def _close_context(self, context: BrowserContext):
        try:
            await context.close()
        except Exception as e:
            logger.warning(f"Context close error: {e}")

    async def _open(self, page: Page, url: str):
        """Navigate, wait for readiness and reject blocked or empty pages"""
        await self._navigate(page, url)
        report = await self.readiness.wait_until_ready(page)
        await self._check_content(page, url)
        return report

    async def _open_for_steps(self, page: Page, url: str):
        """Navigate and wait for readiness. Small pages are fine to drive."""
        if not await self._navigate(page, url):
            raise NavigationFailure(f"Could not load {url}")
        return await self.readiness.wait_until_ready(page)

    async def _navigate(self, page: Page, url: str) -> bool:
        """
        Navigate with retries.

        networkidle navigation is retried; once retries run out a single
        domcontentloaded attempt is made. Returns False when that fails too;
        discovery leaves such a page to the content check, since it may have
        partially loaded.
        """
        retries = max(1, self.config.navigation_retries)
        for attempt in range(1, retries + 1):
            try:
                await page.goto(url, wait_until="networkidle", timeout=self.config.navigation_timeout_ms)
                logger.info(f"Navigated to {url}")
                return True
            except PlaywrightError as e:
                logger.warning(f"Navigation attempt {attempt}/{retries} to {url} failed: {e}")
                if attempt < retries:
                    await page.wait_for_timeout(self.config.navigation_retry_pause_ms)

        try:
            await page.goto(
                url,
                wait_until="domcontentloaded",
                timeout=self.config.fallback_navigation_timeout_ms,
            )
            logger.info(f"Navigated to {url} (domcontentloaded)")
            return True
        except PlaywrightError as e:
            logger.warning(f"Fallback navigation to {url} failed: {e}")
            return False

    async def _check_content(self, page: Page, url: str):
        try:
            size = await self.scanner.evaluate(page, BODY_SIZE_JS)
        except PlaywrightError as e:
            raise NavigationFailure(f"Could not read page content of {url}: {e}") from e

        if (size or 0) < self.config.blocked_content_bytes:
            raise NavigationFailure(
                "Page appears to be blocked or empty. The website may have bot protection."
            )

    async def _capture(self, page: Page, run_id: str, test_id: str, stage: str) -> str:
        data = await page.screenshot(type="png")
        filename = f"{_safe_name(run_id)}/{_safe_name(test_id)}_{stage}_{int(time.time() * 1000)}.png"
        return self.screenshot_store.save(filename, data)
