"""
Exception hierarchy for AGSi data handling.

Every exception carries a ``context`` dictionary (field path, byte offset,
format name, ...) that is folded into the formatted message, so a failed
decode always names where parsing stopped and a failed encode names the
offending field.

Example::

    from agsi.core.errors import MalformedInput

    raise MalformedInput(
        "Expected a JSON object",
        offset=0,
        context={"format": "json"},
    )
"""

from typing import Any, Dict, Iterable, List, Optional


class AgsiError(Exception):
    """
    Base exception for all AGSi errors.

    Attributes:
        message: Short description of the failure
        context: Dictionary of contextual information (path, offset, ...)
    """

    def __init__(self, message: str, context: Optional[Dict[str, Any]] = None):
        self.message = message
        self.context = context or {}
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        """Format the error message with its context."""
        parts = [self.message]
        if self.context:
            details = ", ".join(f"{key}={value}" for key, value in self.context.items())
            parts.append(f" ({details})")
        return "".join(parts)

    def __str__(self) -> str:
        return self._format_message()


# Geometry codec errors

class GeometryError(AgsiError):
    """Base class for geometry construction and codec failures."""


class InvalidGeometry(GeometryError, ValueError):
    """Geometry constructor received coordinates it cannot represent."""


class UnsupportedGeometryKind(GeometryError):
    """Operation is not defined for this geometry kind (e.g. WKT of a Surface)."""


class MalformedGeometryText(GeometryError):
    """Geometry text (WKT) could not be parsed."""


class MalformedGeometryBinary(GeometryError):
    """Geometry binary payload (WKB or base64 framing) could not be parsed."""


class EmptyGeometry(GeometryError):
    """Geometry text or binary contains no coordinates."""


class GeometryPayloadSizeMismatch(GeometryError):
    """Surface mesh payload size is grossly inconsistent with its declared counts."""


# Serialization errors

class SerializationError(AgsiError):
    """Base class for encode/decode failures."""


class DecodeError(SerializationError):
    """
    A payload could not be turned into a Document.

    Attributes:
        offset: Byte or character offset where decoding failed, if known
        path: Field path where decoding failed, if known
    """

    def __init__(self, message: str, offset: Optional[int] = None,
                 path: Optional[str] = None,
                 context: Optional[Dict[str, Any]] = None):
        ctx = dict(context or {})
        if path is not None and "path" not in ctx:
            ctx["path"] = path
        if offset is not None and "offset" not in ctx:
            ctx["offset"] = offset
        self.offset = offset
        self.path = path
        super().__init__(message, ctx)


class MalformedInput(DecodeError):
    """Text or binary input cannot be parsed at all."""


class EncodeError(SerializationError):
    """A Document could not be written in the requested format."""


class SchemaMismatch(EncodeError):
    """A value lies outside the domain the target format declares for its field."""

    def __init__(self, message: str, path: Optional[str] = None,
                 context: Optional[Dict[str, Any]] = None):
        ctx = dict(context or {})
        if path is not None and "path" not in ctx:
            ctx["path"] = path
        self.path = path
        super().__init__(message, ctx)


class UnsupportedField(EncodeError):
    """A populated optional field has no representation in the target format."""

    def __init__(self, format_name: str, paths: Iterable[str],
                 context: Optional[Dict[str, Any]] = None):
        self.format_name = format_name
        self.paths: List[str] = list(paths)
        ctx = dict(context or {})
        ctx.setdefault("format", format_name)
        ctx.setdefault("fields", ", ".join(self.paths))
        super().__init__(
            f"{len(self.paths)} populated field(s) cannot be encoded in {format_name}",
            ctx,
        )


# Domain lookups

class ModelNotFound(AgsiError, KeyError):
    """No ground model with the requested identifier exists in the document."""

    def __init__(self, model_id: str):
        self.model_id = model_id
        super().__init__(f"Model not found: {model_id}", {"model_id": model_id})

    def __str__(self) -> str:
        return self._format_message()
