"""
Error taxonomy for discovery and execution.

Discovery errors propagate to the caller. Execution errors fail the
current test only and are recorded on its result as "<Kind>: <message>".
"""


class QAEngineError(Exception):
    """Base class for engine errors."""

    def describe(self) -> str:
        return f"{type(self).__name__}: {self}"


class NavigationFailure(QAEngineError):
    """Raised when a page never reaches a minimally loaded state."""

    pass


class ExecutionError(QAEngineError):
    """Raised when a single step cannot be completed."""

    pass


class ElementNotFound(ExecutionError):
    """Raised when the locator cascade is exhausted."""

    def __init__(self, target: str, locator: str):
        self.target = target
        self.locator = locator
        super().__init__(f"Element not found: {target} (selector: {locator})")


class UnknownAction(ExecutionError):
    """Raised for a step whose action is not supported."""

    def __init__(self, action: str):
        self.action = action
        super().__init__(f"Unknown action: {action}")


class ActionFailed(ExecutionError):
    """Raised when every attempt at an action failed."""

    def __init__(self, action: str, target: str, cause: Exception):
        self.action = action
        self.target = target
        self.cause = cause
        super().__init__(f"{action} on {target} failed: {cause}")


class ActionTimeout(ActionFailed):
    """Raised when the last attempt at an action exceeded its bound."""

    pass


def describe_error(error: Exception) -> str:
    """Plain-text error string stored on a failed test result."""
    if isinstance(error, QAEngineError):
        return error.describe()
    return f"{type(error).__name__}: {error}"
