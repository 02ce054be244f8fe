"""
Pytest configuration and shared fixtures for QA Agent tests.
"""

import pytest
import sys
from contextlib import asynccontextmanager
from pathlib import Path
from unittest.mock import Mock, AsyncMock
from typing import Dict, Any, List

# Add backend app to path
sys.path.insert(0, str(Path(__file__).parent.parent / "app"))


# ==================== Mock Page Fixture ====================

@pytest.fixture
def mock_locator():
    """Create a mock Playwright locator that matches one element."""
    locator = AsyncMock()

    locator.count = AsyncMock(return_value=1)
    locator.click = AsyncMock()
    locator.fill = AsyncMock()
    locator.clear = AsyncMock()
    locator.press = AsyncMock()
    locator.check = AsyncMock()
    locator.uncheck = AsyncMock()
    locator.hover = AsyncMock()
    locator.select_option = AsyncMock()
    locator.wait_for = AsyncMock()
    locator.scroll_into_view_if_needed = AsyncMock()
    locator.first = locator

    return locator


@pytest.fixture
def mock_page(mock_locator):
    """Create a mock Playwright page object."""
    page = AsyncMock()

    # Basic properties
    page.url = "https://example.com/login"

    # Navigation
    page.goto = AsyncMock(return_value=None)
    page.wait_for_load_state = AsyncMock()
    page.wait_for_function = AsyncMock()
    page.wait_for_timeout = AsyncMock()

    # Evaluation
    page.evaluate = AsyncMock(return_value=None)
    page.add_style_tag = AsyncMock()

    # Locators
    page.locator = Mock(return_value=mock_locator)

    # Keyboard
    page.keyboard = AsyncMock()
    page.keyboard.press = AsyncMock()
    page.keyboard.type = AsyncMock()

    # Screenshot
    page.screenshot = AsyncMock(return_value=b"fake_screenshot_data")

    return page


# ==================== Mock Browser Fixture ====================

@pytest.fixture
def mock_context(mock_page):
    """Create a mock Playwright browser context."""
    context = AsyncMock()
    context.new_page = AsyncMock(return_value=mock_page)
    context.add_init_script = AsyncMock()
    context.close = AsyncMock()
    return context


@pytest.fixture
def mock_browser(mock_context):
    """Create a mock Playwright browser object."""
    browser = AsyncMock()
    browser.new_context = AsyncMock(return_value=mock_context)
    browser.close = AsyncMock()
    return browser


@pytest.fixture
def browser_factory(mock_browser):
    """Browser factory yielding the mock browser, recording enter/exit."""
    events: List[str] = []

    @asynccontextmanager
    async def factory(config):
        events.append("acquire")
        try:
            yield mock_browser
        finally:
            events.append("release")

    factory.events = events
    return factory


# ==================== Screenshot Store Fixture ====================

@pytest.fixture
def screenshot_store():
    """In-memory screenshot store."""
    store = Mock()
    store.saved = []

    def save(filename, data):
        store.saved.append(filename)
        return f"/screenshots/{filename}"

    store.save = Mock(side_effect=save)
    return store


# ==================== Sample Data ====================

@pytest.fixture
def candidate_record():
    """Factory for raw candidate records as produced by the in-page script."""
    def make(**overrides) -> Dict[str, Any]:
        record = {
            "tag": "div",
            "inputType": "",
            "id": "",
            "name": "",
            "placeholder": "",
            "ariaLabel": "",
            "title": "",
            "href": "",
            "roleAttr": "",
            "className": "",
            "ariaExpanded": False,
            "ariaHaspopup": False,
            "text": "",
            "testing": {},
            "bounds": {"x": 10, "y": 20, "width": 120, "height": 32},
            "originZone": "main-document",
            "shadowHosts": [],
            "frames": [],
            "structuralPath": "div > div:nth-of-type(2)",
        }
        record.update(overrides)
        return record

    return make


@pytest.fixture
def login_elements() -> List[Dict[str, Any]]:
    """Element records of a simple login page."""
    return [
        {"id": "e0", "locator": "#email", "tag": "input", "role": "email_input"},
        {"id": "e1", "locator": "#password", "tag": "input", "role": "password_input"},
        {"id": "e2", "locator": 'button:has-text("Sign in")', "tag": "button", "role": "button"},
    ]


@pytest.fixture
def sample_test_case() -> Dict[str, Any]:
    """Sample test case for testing."""
    return {
        "id": "test_login_001",
        "name": "Login Test",
        "priority": "high",
        "steps": [
            {"action": "type", "target": "e0", "value": "user@example.com"},
            {"action": "type", "target": "e1", "value": "secret"},
            {"action": "click", "target": "e2"}
        ]
    }
