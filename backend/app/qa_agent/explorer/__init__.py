"""
Page Explorer Module

Discovers the interactive elements of an unknown page and gives each one
a durable locator.
"""

from .element_scanner import (
    ElementDescriptor,
    ElementScanner,
    OriginZone,
    PageInspection,
    ScanResult,
)
from .locator_synthesizer import classify_role, synthesize
from .page_classifier import PageType, classify_page

__all__ = [
    "ElementDescriptor",
    "ElementScanner",
    "OriginZone",
    "PageInspection",
    "ScanResult",
    "classify_role",
    "synthesize",
    "PageType",
    "classify_page",
]
