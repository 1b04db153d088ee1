"""Error Hierarchy — typed, categorized exceptions raised around command dispatch.

Invariants:
    - Every error has a code (str), category (ErrorCategory), severity (ErrorSeverity)
    - to_envelope() produces a status=false Envelope with an "error: " prefixed message
    - No internal details leaked in user-facing messages

Design Decisions:
    - Single hierarchy with DispatchError base: FastAPI global handler catches all (ADR: uniform error shape)
    - Malformed requests and unknown controllers are NOT exceptions — the resolver
      returns failure Envelopes for those (cheap, expected, never logged as unexpected)
"""

from enum import Enum

from jsoncommand.core.envelope import Envelope


class ErrorSeverity(str, Enum):
    """Error severity for observability."""
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class ErrorCategory(str, Enum):
    """High-level error categories for routing and handling."""
    VALIDATION = "validation"
    AUTHORIZATION = "authorization"
    TRANSPORT = "transport"
    INTERNAL = "internal"


class DispatchError(Exception):
    """Base exception for all gateway errors."""

    def __init__(
        self,
        message: str,
        code: str,
        category: ErrorCategory,
        severity: ErrorSeverity = ErrorSeverity.ERROR,
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        self.category = category
        self.severity = severity

    def to_envelope(self) -> Envelope:
        """Convert to a failure Envelope for the wire."""
        return Envelope.failure(f"error: {self.message}")


class AccessDeniedError(DispatchError):
    """Caller is not (or no longer) authorized — raised by controllers."""
    def __init__(self, message: str = "Access denied"):
        super().__init__(
            message, "ACCESS_DENIED", ErrorCategory.AUTHORIZATION,
            ErrorSeverity.WARNING,
        )


class ControllerLoadError(DispatchError):
    """A controller plugin was found but could not be loaded."""
    def __init__(self, controller_name: str, reason: str):
        super().__init__(
            f"Controller '{controller_name}' failed to load: {reason}",
            "CONTROLLER_LOAD_FAILED", ErrorCategory.INTERNAL,
            ErrorSeverity.CRITICAL,
        )
        self.controller_name = controller_name


class ResponseCommittedError(DispatchError):
    """Second write attempted on a transport that already started responding."""
    def __init__(self):
        super().__init__(
            "Response has already been committed",
            "RESPONSE_COMMITTED", ErrorCategory.TRANSPORT,
            ErrorSeverity.ERROR,
        )
