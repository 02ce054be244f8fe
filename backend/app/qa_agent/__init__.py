"""
QA Agent Engine

Discovers the interactive elements of an unknown web page, gives each one a
durable locator, and executes scripted steps against them:
- Element scanning across shadow roots and same-origin iframes
- Layered readiness detection for SPAs and server-rendered pages
- Fallback ladders for locating and acting
- One browser per run, fresh context per test
"""

from .config import EngineConfig
from .errors import (
    QAEngineError,
    NavigationFailure,
    ExecutionError,
    ElementNotFound,
    UnknownAction,
    ActionFailed,
    ActionTimeout,
)
from .artifacts import LocalScreenshotStore, ScreenshotStore
from .explorer.element_scanner import ElementDescriptor, ElementScanner, OriginZone, PageInspection
from .core.run_coordinator import ExecutionResult, RunCoordinator

__all__ = [
    # Config
    "EngineConfig",
    # Errors
    "QAEngineError",
    "NavigationFailure",
    "ExecutionError",
    "ElementNotFound",
    "UnknownAction",
    "ActionFailed",
    "ActionTimeout",
    # Artifacts
    "LocalScreenshotStore",
    "ScreenshotStore",
    # Discovery
    "ElementDescriptor",
    "ElementScanner",
    "OriginZone",
    "PageInspection",
    # Execution
    "ExecutionResult",
    "RunCoordinator",
]
