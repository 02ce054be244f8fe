"""
Core Execution Module

Readiness detection, selector resolution, step execution and run
sequencing over a Playwright browser.
"""

from .readiness import ReadinessDetector, ReadinessReport
from .selector_resolver import ElementIndex, SelectorResolver
from .action_executor import ActionExecutor, Step, StepAction, StepReport
from .run_coordinator import ExecutionResult, RunCoordinator, launch_browser

__all__ = [
    "ReadinessDetector",
    "ReadinessReport",
    "ElementIndex",
    "SelectorResolver",
    "ActionExecutor",
    "Step",
    "StepAction",
    "StepReport",
    "ExecutionResult",
    "RunCoordinator",
    "launch_browser",
]
