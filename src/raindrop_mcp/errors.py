"""Error taxonomy for the Raindrop MCP server.

Every error raised by this package carries an explicit ``kind`` so that the
transport binding (and tests) can branch on the failure category instead of
on the exception class:

- validation: caller input failed schema or business-rule checks
- not_found: unknown tool, resource uri, prompt, or Raindrop entity
- auth: Raindrop.io rejected the access token
- rate_limited: Raindrop.io throttled the request
- upstream: any other Raindrop.io or network failure
- contract: a handler returned a value violating its own output schema
"""
import enum
from typing import Any, Optional


class ErrorKind(str, enum.Enum):
    """Failure category carried by every RaindropMCPError."""
    VALIDATION = "validation"
    NOT_FOUND = "not_found"
    AUTH = "auth"
    RATE_LIMITED = "rate_limited"
    UPSTREAM = "upstream"
    CONTRACT = "contract"


class RaindropMCPError(Exception):
    """Base class for all errors surfaced to the MCP host."""

    kind: ErrorKind = ErrorKind.UPSTREAM

    def __init__(self, message: str, cause: Optional[BaseException] = None):
        super().__init__(message)
        self.message = message
        self.cause = cause

    @property
    def is_caller_error(self) -> bool:
        """True when the failure is attributable to the caller or upstream, not to us."""
        return self.kind is not ErrorKind.CONTRACT


class ValidationError(RaindropMCPError):
    """Input or output failed schema validation.

    ``violations`` holds one dict per violated constraint with ``path``,
    ``message``, ``type`` and ``actual`` keys.
    """

    kind = ErrorKind.VALIDATION

    def __init__(
        self,
        message: str,
        violations: Optional[list[dict[str, Any]]] = None,
        cause: Optional[BaseException] = None,
    ):
        super().__init__(message, cause)
        self.violations = violations or []


class OutputContractError(ValidationError):
    """A handler's result does not match the output schema it declares."""

    kind = ErrorKind.CONTRACT


class NotFoundError(RaindropMCPError):
    kind = ErrorKind.NOT_FOUND


class AuthError(RaindropMCPError):
    kind = ErrorKind.AUTH


class RateLimitError(RaindropMCPError):
    kind = ErrorKind.RATE_LIMITED


class UpstreamError(RaindropMCPError):
    kind = ErrorKind.UPSTREAM


class RegistryError(Exception):
    """Raised when the tool registry is misconfigured at startup."""


class DuplicateToolError(RegistryError):
    """Raised when two tool definitions share a name."""

    def __init__(self, name: str):
        super().__init__(f"Tool '{name}' is already registered")
        self.name = name


class ConfigurationError(Exception):
    """Raised when required configuration is missing at startup."""
