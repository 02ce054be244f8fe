"""
Element Scanner

Discovers the visible interactive elements of a live page and describes
each one with a synthesized locator.

Collection runs in the page (one evaluate call over the main document,
open shadow roots and same-origin iframes). Role classification, locator
synthesis, deduplication, truncation and id assignment happen here.
"""

import base64
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

from playwright.async_api import Page, Error as PlaywrightError

from ..config import EngineConfig
from .locator_synthesizer import classify_role, synthesize
from .page_classifier import classify_page
from .scanner_script import COLLECT_CANDIDATES_JS, VISIBLE_TEXT_JS, build_scan_args

logger = logging.getLogger(__name__)


CONTEXT_DESTROYED = "Execution context was destroyed"


class OriginZone(Enum):
    """Where in the page an element was found"""
    MAIN_DOCUMENT = "main-document"
    SHADOW_ROOT = "shadow-root"
    SAME_ORIGIN_IFRAME = "same-origin-iframe"


@dataclass(frozen=True)
class ElementDescriptor:
    """One discovered interactive element"""
    id: str
    locator: str
    tag: str
    role: str
    input_type: str = ""
    visible_text: str = ""
    placeholder: str = ""
    aria_label: str = ""
    name: str = ""
    title: str = ""
    href: str = ""
    bounds: Dict[str, int] = field(default_factory=dict)
    origin_zone: OriginZone = OriginZone.MAIN_DOCUMENT

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "locator": self.locator,
            "tag": self.tag,
            "inputType": self.input_type,
            "role": self.role,
            "visibleText": self.visible_text,
            "placeholder": self.placeholder,
            "ariaLabel": self.aria_label,
            "name": self.name,
            "title": self.title,
            "href": self.href,
            "bounds": dict(self.bounds),
            "originZone": self.origin_zone.value,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ElementDescriptor":
        """Rebuild from a to_dict() record. Older records carry 'selector'."""
        return cls(
            id=data["id"],
            locator=data.get("locator") or data.get("selector") or "",
            tag=data.get("tag", ""),
            role=data.get("role", "interactive"),
            input_type=data.get("inputType", data.get("type", "")) or "",
            visible_text=data.get("visibleText", "") or "",
            placeholder=data.get("placeholder", "") or "",
            aria_label=data.get("ariaLabel", "") or "",
            name=data.get("name", "") or "",
            title=data.get("title", "") or "",
            href=data.get("href", "") or "",
            bounds=dict(data.get("bounds") or {}),
            origin_zone=OriginZone(data.get("originZone", OriginZone.MAIN_DOCUMENT.value)),
        )


@dataclass
class ScanResult:
    """Descriptors plus counters from one scan"""
    elements: List[ElementDescriptor]
    raw_count: int = 0
    hidden_count: int = 0
    duplicate_count: int = 0
    truncated_count: int = 0


@dataclass
class PageInspection:
    """Discovery output for one URL"""
    url: str
    page_type: str
    visible_text: str
    elements: List[ElementDescriptor]
    screenshot: str = ""  # base64 JPEG of the viewport
    framework: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "url": self.url,
            "pageType": self.page_type,
            "visibleText": self.visible_text,
            "elements": [e.to_dict() for e in self.elements],
            "screenshot": self.screenshot,
            "framework": self.framework,
        }


def build_descriptors(candidates: List[Dict[str, Any]], max_elements: int) -> ScanResult:
    """
    Turn raw candidate records into descriptors.

    Candidates are expected in discovery order and already visibility
    filtered. Duplicates (same locator and visible text) keep the first
    occurrence. Ids are assigned after dedup and truncation so they are
    contiguous.
    """
    seen = set()
    kept = []
    duplicates = 0

    for record in candidates:
        locator, _rule = synthesize(record)
        text = (record.get("text") or "").strip()
        key = (locator, text)
        if key in seen:
            duplicates += 1
            continue
        seen.add(key)
        kept.append((record, locator, text))

    truncated = max(0, len(kept) - max_elements)
    kept = kept[:max_elements]

    elements = []
    for index, (record, locator, text) in enumerate(kept):
        elements.append(ElementDescriptor(
            id=f"e{index}",
            locator=locator,
            tag=record.get("tag", ""),
            role=classify_role(record),
            input_type=record.get("inputType", ""),
            visible_text=text,
            placeholder=record.get("placeholder", ""),
            aria_label=record.get("ariaLabel", ""),
            name=record.get("name", ""),
            title=record.get("title", ""),
            href=record.get("href", ""),
            bounds=dict(record.get("bounds") or {}),
            origin_zone=OriginZone(record.get("originZone", OriginZone.MAIN_DOCUMENT.value)),
        ))

    return ScanResult(
        elements=elements,
        duplicate_count=duplicates,
        truncated_count=truncated,
    )


class ElementScanner:
    """
    Scans a loaded page for interactive elements.

    Features:
    - Main document, open shadow roots and same-origin iframes
    - cursor:pointer sweep for custom widgets
    - Viewport-distance and visibility filtering
    - Durable locator per element
    """

    def __init__(self, config: Optional[EngineConfig] = None):
        self.config = config or EngineConfig()

    async def evaluate(self, page: Page, script: str, arg: Any = None) -> Any:
        """page.evaluate that survives a late client-side navigation"""
        last_error: Optional[Exception] = None
        for attempt in range(max(1, self.config.evaluate_retries)):
            try:
                return await page.evaluate(script, arg)
            except PlaywrightError as e:
                if CONTEXT_DESTROYED not in str(e):
                    raise
                last_error = e
                logger.warning(f"Execution context destroyed during scan, retrying ({attempt + 1})")
                await page.wait_for_timeout(self.config.evaluate_retry_pause_ms)
        raise last_error

    async def scan(self, page: Page) -> ScanResult:
        """
        Collect and describe the interactive elements of the current page.

        Args:
            page: Loaded Playwright page

        Returns:
            ScanResult with descriptors in discovery order
        """
        raw = await self.evaluate(page, COLLECT_CANDIDATES_JS, build_scan_args(self.config))
        result = build_descriptors(raw.get("candidates", []), self.config.max_elements)
        result.raw_count = raw.get("rawCount", 0)
        result.hidden_count = raw.get("hiddenCount", 0)

        logger.info(
            f"Scanned {result.raw_count} candidates: {len(result.elements)} kept, "
            f"{result.hidden_count} hidden, {result.duplicate_count} duplicates, "
            f"{result.truncated_count} over cap"
        )
        return result

    async def visible_text(self, page: Page) -> str:
        text = await self.evaluate(page, VISIBLE_TEXT_JS, self.config.visible_text_max_length)
        return text or ""

    async def screenshot(self, page: Page) -> str:
        """Viewport screenshot as base64 JPEG"""
        data = await page.screenshot(
            full_page=False,
            type="jpeg",
            quality=self.config.screenshot_quality,
        )
        return base64.b64encode(data).decode("ascii")

    async def inspect(self, page: Page, url: str, framework: Optional[str] = None) -> PageInspection:
        """Full discovery snapshot of an already loaded page"""
        screenshot = await self.screenshot(page)
        text = await self.visible_text(page)
        result = await self.scan(page)
        page_type = classify_page(result.elements, text)

        return PageInspection(
            url=url,
            page_type=page_type.value,
            visible_text=text,
            elements=result.elements,
            screenshot=screenshot,
            framework=framework,
        )
