"""
Page Classifier

Guesses what kind of page was inspected from its elements and visible text.
The page type is passed to the test-plan generator as a hint.
"""

import re
from enum import Enum
from typing import Any, Dict, Iterable, List, Union


class PageType(Enum):
    """Page types the test-plan generator knows about"""
    LOGIN = "login"
    SIGNUP = "signup"
    CHECKOUT = "checkout"
    SEARCH = "search"
    CONTACT = "contact"
    OTHER = "other"


SIGNUP_PATTERNS = [r"sign\s?up", r"register", r"create\s+(an\s+)?account"]
CHECKOUT_PATTERNS = [r"checkout", r"payment", r"\bcart\b"]
SEARCH_PATTERNS = [r"search"]
CONTACT_PATTERNS = [r"contact"]


def _field(element: Union[Dict[str, Any], Any], name: str, camel: str) -> str:
    if isinstance(element, dict):
        value = element.get(camel, element.get(name))
    else:
        value = getattr(element, name, None)
    return (value or "").lower()


def _matches(patterns: List[str], text: str) -> bool:
    return any(re.search(pattern, text) for pattern in patterns)


def classify_page(elements: Iterable[Any], visible_text: str) -> PageType:
    """
    Classify a page.

    Args:
        elements: ElementDescriptors or their dict records
        visible_text: Visible text of the page

    Returns:
        Detected PageType (OTHER when nothing matches)
    """
    elements = list(elements)
    text = (visible_text or "").lower()

    roles = {_field(e, "role", "role") for e in elements}
    input_types = {_field(e, "input_type", "inputType") for e in elements}

    has_email = "email_input" in roles or "email" in input_types
    has_password = "password_input" in roles or "password" in input_types
    has_search_input = "search" in input_types or any(
        "search" in _field(e, attr, camel)
        for e in elements
        for attr, camel in (("placeholder", "placeholder"), ("name", "name"), ("aria_label", "ariaLabel"))
    )

    if has_email and has_password:
        if _matches(SIGNUP_PATTERNS, text):
            return PageType.SIGNUP
        return PageType.LOGIN

    if _matches(CHECKOUT_PATTERNS, text):
        return PageType.CHECKOUT

    if has_search_input or _matches(SEARCH_PATTERNS, text):
        return PageType.SEARCH

    if _matches(CONTACT_PATTERNS, text) and "textarea" in roles:
        return PageType.CONTACT

    return PageType.OTHER
