"""Validation layer: check values against registered schemas.

``validate`` returns a normalized copy of the input (extra fields kept,
unset optional fields left absent) or raises ``errors.ValidationError``
listing every violated constraint.
"""
import copy
import functools
import logging
from typing import Any, Awaitable, Callable, Optional

from pydantic import TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from .errors import OutputContractError, ValidationError
from .schemas import AnyToolResponse, StreamingChunk

logger = logging.getLogger("raindrop-mcp.validation")


@functools.lru_cache(maxsize=None)
def _adapter(schema: Any) -> TypeAdapter:
    return TypeAdapter(schema)


@functools.lru_cache(maxsize=None)
def _json_schema(schema: Any, title: Optional[str]) -> dict:
    document = _adapter(schema).json_schema(by_alias=True)
    if title:
        document = {"title": title, **{k: v for k, v in document.items() if k != "title"}}
    return document


def violations_from(exc: PydanticValidationError) -> list[dict[str, Any]]:
    """Flatten a pydantic error into path/message/type/actual records."""
    violations = []
    for err in exc.errors(include_url=False):
        path = ".".join(str(part) for part in err.get("loc", ())) or "<root>"
        violations.append({
            "path": path,
            "message": err.get("msg", ""),
            "type": err.get("type", ""),
            "actual": type(err.get("input")).__name__,
        })
    return violations


def validation_error_from(exc: PydanticValidationError, label: str) -> ValidationError:
    violations = violations_from(exc)
    details = "; ".join(
        f"{v['path']}: {v['message']} (got {v['actual']})" for v in violations
    )
    return ValidationError(f"{label} validation failed: {details}", violations=violations, cause=exc)


def validate(value: Any, schema: Any = None) -> Any:
    """Validate ``value`` against ``schema`` (default: any tool response)."""
    target = AnyToolResponse if schema is None else schema
    adapter = _adapter(target)
    try:
        parsed = adapter.validate_python(value)
    except PydanticValidationError as e:
        raise validation_error_from(e, "Response") from e
    return adapter.dump_python(parsed, mode="json", by_alias=True, exclude_unset=True)


def wrap_with_validation(
    handler: Callable[..., Awaitable[Any]], schema: Any
) -> Callable[..., Awaitable[Any]]:
    """Wrap an async handler so its result is checked against ``schema``.

    A mismatch is a programming error in the handler and surfaces as an
    ``OutputContractError``; the handler's own exceptions pass through.
    """

    @functools.wraps(handler)
    async def wrapper(*args, **kwargs):
        result = await handler(*args, **kwargs)
        try:
            return validate(result, schema)
        except ValidationError as e:
            logger.error(f"Output of {handler.__name__} violates its schema: {e.message}")
            raise OutputContractError(
                f"Tool output validation failed: {e.message}",
                violations=e.violations,
                cause=e,
            ) from e

    return wrapper


def describe_schema(schema: Any, title: Optional[str] = None) -> dict:
    """JSON-Schema description of ``schema``. Returns a fresh copy each call."""
    return copy.deepcopy(_json_schema(schema, title))


def build_tool_metadata(output_schema: Any, category: str, streaming: bool = False) -> dict:
    metadata = {
        "category": category,
        "outputSchema": describe_schema(output_schema, f"{category}Output"),
        "hasValidation": True,
    }
    if streaming:
        metadata["streaming"] = {
            "supported": True,
            "chunkSchema": describe_schema(StreamingChunk),
        }
    return metadata
