"""
Readiness Detector

Decides when a freshly loaded page is stable enough to scan or drive.
Handles server-rendered pages and client-rendered SPAs (React, Next.js,
Angular, Vue, Nuxt, Svelte, Ember, Gatsby) through one layered heuristic.

Every layer is independently bounded and its failure is swallowed: a page
that never goes network-idle is still scanned once the remaining layers
have run.
"""

import logging
from dataclasses import dataclass, field
from typing import Awaitable, Callable, List, Optional, Tuple

from playwright.async_api import Page

from ..config import EngineConfig

logger = logging.getLogger(__name__)


# Framework detection patterns
FRAMEWORK_SIGNATURES = {
    "next": {
        "global": ["__NEXT_DATA__", "next"],
        "attributes": ["#__next"],
    },
    "nuxt": {
        "global": ["__NUXT__", "$nuxt"],
        "attributes": ["#__nuxt", "#__layout"],
    },
    "gatsby": {
        "global": ["___gatsby"],
        "attributes": ["#___gatsby"],
    },
    "react": {
        "global": ["__REACT_DEVTOOLS_GLOBAL_HOOK__", "React"],
        "attributes": ["[data-reactroot]", "[data-reactid]", "#root > *"],
    },
    "angular": {
        "global": ["ng", "getAllAngularRootElements"],
        "attributes": ["[ng-version]", "[_nghost-ng-c0]", "app-root > *"],
    },
    "vue": {
        "global": ["__VUE__", "Vue"],
        "attributes": ["[data-v-app]", "[data-server-rendered]", "#app > *"],
    },
    "svelte": {
        "global": ["__svelte"],
        "attributes": ["[class*='svelte-']"],
    },
    "ember": {
        "global": ["Ember"],
        "attributes": [".ember-application", ".ember-view"],
    },
}

# Loading indicators that must be gone (or hidden) before a page counts as rendered
LOADING_INDICATORS = [
    "[class*='loading']",
    "[class*='spinner']",
    "[class*='skeleton']",
    "[class*='shimmer']",
    "[class*='placeholder-glow']",
    "[aria-busy='true']",
    "[role='progressbar']",
]

CONTENT_READY_JS = """
(args) => {
    const {globals, markers, loaders, minBytes} = args;

    const hasGlobal = globals.some(name => {
        try { return typeof window[name] !== 'undefined' && window[name] !== null; }
        catch (e) { return false; }
    });
    const hasMarker = markers.some(sel => {
        try { return document.querySelector(sel) !== null; }
        catch (e) { return false; }
    });
    const loaderVisible = loaders.some(sel => {
        let nodes;
        try { nodes = document.querySelectorAll(sel); } catch (e) { return false; }
        return Array.from(nodes).some(el => {
            const style = getComputedStyle(el);
            const rect = el.getBoundingClientRect();
            return style.display !== 'none' && style.visibility !== 'hidden'
                && rect.width > 0 && rect.height > 0;
        });
    });
    const bodySize = document.body ? document.body.innerHTML.length : 0;

    // Any one signal is enough
    return hasGlobal || hasMarker || !loaderVisible || bodySize > minBytes;
}
"""

DETECT_FRAMEWORK_JS = """
(signatures) => {
    for (const [name, sig] of signatures) {
        const hasGlobal = sig.global.some(g => {
            try { return typeof window[g] !== 'undefined' && window[g] !== null; }
            catch (e) { return false; }
        });
        if (hasGlobal) return name;
        const hasMarker = sig.attributes.some(sel => {
            try { return document.querySelector(sel) !== null; }
            catch (e) { return false; }
        });
        if (hasMarker) return name;
    }
    return null;
}
"""

SCROLL_DOWN_JS = """
(fraction) => window.scrollTo(0, Math.floor(document.body.scrollHeight * fraction))
"""

SCROLL_TOP_JS = "() => window.scrollTo(0, 0)"

FREEZE_ANIMATIONS_CSS = """
*, *::before, *::after {
    animation-duration: 0s !important;
    animation-delay: 0s !important;
    transition-duration: 0s !important;
    transition-delay: 0s !important;
    scroll-behavior: auto !important;
}
"""


@dataclass
class ReadinessReport:
    """Which readiness layers completed on a page"""
    completed: List[str] = field(default_factory=list)
    failed: List[str] = field(default_factory=list)
    framework: Optional[str] = None

    @property
    def fully_ready(self) -> bool:
        return not self.failed


class ReadinessDetector:
    """
    Layered wait for page stability.

    Layers, in order:
    1. Network idle
    2. Content readiness (framework markers, loaders gone, body size)
    3. Settle delay
    4. Synthetic scroll to trigger lazy loading
    5. Animation and transition freeze
    6. Final settle
    """

    def __init__(self, config: Optional[EngineConfig] = None):
        self.config = config or EngineConfig()

    def _layers(self, page: Page) -> List[Tuple[str, Callable[[], Awaitable[None]]]]:
        return [
            ("network_idle", lambda: self._wait_network_idle(page)),
            ("content_ready", lambda: self._wait_content_ready(page)),
            ("settle", lambda: page.wait_for_timeout(self.config.settle_delay_ms)),
            ("lazy_scroll", lambda: self._scroll_for_lazy_content(page)),
            ("freeze_animations", lambda: self._freeze_animations(page)),
            ("final_settle", lambda: page.wait_for_timeout(self.config.final_settle_ms)),
        ]

    async def wait_until_ready(self, page: Page) -> ReadinessReport:
        """
        Run every readiness layer against the page.

        Never raises. Layer failures are logged at debug and recorded on
        the returned report.
        """
        report = ReadinessReport()

        for name, layer in self._layers(page):
            try:
                await layer()
                report.completed.append(name)
                logger.debug(f"Readiness layer '{name}' completed")
            except Exception as e:
                report.failed.append(name)
                logger.debug(f"Readiness layer '{name}' gave up: {e}")

        try:
            report.framework = await self.detect_framework(page)
        except Exception as e:
            logger.debug(f"Framework detection failed: {e}")

        return report

    # ==================== Layers ====================

    async def _wait_network_idle(self, page: Page):
        await page.wait_for_load_state("networkidle", timeout=self.config.network_idle_timeout_ms)

    def content_ready_args(self) -> dict:
        """Argument for CONTENT_READY_JS"""
        return {
            "globals": [g for sig in FRAMEWORK_SIGNATURES.values() for g in sig["global"]],
            "markers": [m for sig in FRAMEWORK_SIGNATURES.values() for m in sig["attributes"]],
            "loaders": LOADING_INDICATORS,
            "minBytes": self.config.content_min_bytes,
        }

    async def _wait_content_ready(self, page: Page):
        await page.wait_for_function(
            CONTENT_READY_JS,
            arg=self.content_ready_args(),
            timeout=self.config.content_wait_timeout_ms,
        )

    async def _scroll_for_lazy_content(self, page: Page):
        await page.evaluate(SCROLL_DOWN_JS, self.config.scroll_fraction)
        await page.wait_for_timeout(self.config.scroll_pause_ms)
        await page.evaluate(SCROLL_TOP_JS)
        await page.wait_for_timeout(self.config.scroll_pause_ms)

    async def _freeze_animations(self, page: Page):
        await page.add_style_tag(content=FREEZE_ANIMATIONS_CSS)

    # ==================== Framework Detection ====================

    async def detect_framework(self, page: Page) -> Optional[str]:
        """
        Detect which SPA framework rendered the page.

        Returns:
            Framework name, or None for plain server-rendered pages
        """
        signatures = [[name, sig] for name, sig in FRAMEWORK_SIGNATURES.items()]
        framework = await page.evaluate(DETECT_FRAMEWORK_JS, signatures)
        if framework:
            logger.info(f"Detected SPA framework: {framework}")
        return framework
