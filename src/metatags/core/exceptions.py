"""
Custom exception classes for the metatags codec.

Every failure the codec can report derives from ``MetatagsError`` so callers
can catch the whole family in one place, or pick the specific condition they
care about.
"""

from typing import Any, Optional


class MetatagsError(Exception):
    """Base exception class for all metatags exceptions."""

    pass


class NotRecordError(MetatagsError, TypeError):
    """Raised when the record argument is not a usable record instance.

    Decoding needs a mutable dataclass or pydantic model instance; encoding
    accepts frozen instances too. Classes, plain objects and mappings are
    rejected.
    """

    def __init__(self, obj: Any, reason: str = "expected a dataclass or pydantic model instance"):
        self.obj = obj
        self.reason = reason
        super().__init__(f"{reason}, got {type(obj).__name__}")


class ValueMissingError(MetatagsError, KeyError):
    """
    Raised when decode cannot find the key for a tagged field.

    Example:
        >>> raise ValueMissingError(key="prefix/age", field="age")
    """

    def __init__(self, key: str, field: Optional[str] = None):
        self.key = key
        self.field = field
        message = f"couldn't extract value from metadata: missing key {key!r}"
        if field:
            message += f" (field {field!r})"
        super().__init__(message)

    def __str__(self) -> str:
        # KeyError quotes its argument; keep the message readable.
        return self.args[0]


class ConversionError(MetatagsError, ValueError):
    """
    Raised when a string cannot be converted to the requested kind.

    The converters raise it with ``kind`` and ``value``; the codec re-raises
    with the metadata ``key`` and record ``field`` filled in.
    """

    def __init__(
        self,
        kind: Any,
        value: str,
        *,
        key: Optional[str] = None,
        field: Optional[str] = None,
        index: Optional[int] = None,
        reason: Optional[str] = None,
    ):
        self.kind = kind
        self.value = value
        self.key = key
        self.field = field
        self.index = index
        self.reason = reason

        kind_name = getattr(kind, "value", kind)
        message = f"couldn't convert {value!r} to {kind_name}"
        if index is not None:
            message += f" at element {index}"
        if key:
            message += f" for key {key!r}"
        if field:
            message += f" (field {field!r})"
        if reason:
            message += f": {reason}"
        super().__init__(message)

    def located(self, *, key: str, field: str) -> "ConversionError":
        """Copy of this error tagged with where it happened."""
        return ConversionError(
            self.kind,
            self.value,
            key=key,
            field=field,
            index=self.index,
            reason=self.reason,
        )


class UnsupportedTypeError(MetatagsError, TypeError):
    """Raised when a tagged field's type, or a sequence element type, is not supported."""

    def __init__(self, type_: Any, field: Optional[str] = None):
        self.type = type_
        self.field = field
        message = f"type is not supported: {type_!r}"
        if field:
            message += f" (field {field!r})"
        super().__init__(message)
