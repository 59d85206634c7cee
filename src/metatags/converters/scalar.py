from __future__ import annotations

import math
import re
import struct
from datetime import timedelta
from typing import Any, Callable, Dict

from metatags.converters.duration import DurationSyntaxError, format_duration, parse_duration
from metatags.core.exceptions import ConversionError, UnsupportedTypeError
from metatags.core.kinds import PYTHON_TYPES, SIGNED_BITS, UNSIGNED_BITS, Kind

_TRUE = frozenset({"1", "t", "T", "TRUE", "true", "True"})
_FALSE = frozenset({"0", "f", "F", "FALSE", "false", "False"})

_SIGNED = re.compile(r"[+-]?[0-9]+")
_UNSIGNED = re.compile(r"[0-9]+")
# Longest significant digit run a 64-bit integer can have.
_MAX_INT_DIGITS = 20

# Every alternative splits a digit run exactly one way, so matching stays linear.
_DECIMAL_BODY = r"(?:[0-9]+(?:\.[0-9]*)?|\.[0-9]+)(?:[eE][+-]?[0-9]+)?"
_HEX_BODY = r"0x(?:[0-9a-f]+(?:\.[0-9a-f]*)?|\.[0-9a-f]+)p[+-]?[0-9]+"
_FLOAT_BODY = rf"(?:{_HEX_BODY}|{_DECIMAL_BODY}|inf|infinity|nan)"
_FLOAT = re.compile(rf"[+-]?{_FLOAT_BODY}", re.IGNORECASE)
_HEX_PREFIX = re.compile(r"[+-]?0x", re.IGNORECASE)
# "a+bi", "bi" or "a"; the imaginary unit may be written i or j.
_COMPLEX = re.compile(
    rf"(?P<real>[+-]?{_FLOAT_BODY})(?P<imag>[+-]{_FLOAT_BODY})[ij]"
    rf"|(?P<imag_only>[+-]?{_FLOAT_BODY})[ij]"
    rf"|(?P<real_only>[+-]?{_FLOAT_BODY})",
    re.IGNORECASE,
)


def _parse_bool(text: str, kind: Kind) -> bool:
    if text in _TRUE:
        return True
    if text in _FALSE:
        return False
    raise ConversionError(kind, text)


def _int_literal(text: str, kind: Kind, reason: str) -> int:
    digits = text.lstrip("+-").lstrip("0") or "0"
    if len(digits) > _MAX_INT_DIGITS:
        raise ConversionError(kind, text, reason=reason)
    value = int(digits)
    return -value if text.startswith("-") else value


def _parse_signed(text: str, kind: Kind) -> int:
    if not _SIGNED.fullmatch(text):
        raise ConversionError(kind, text)
    bits = SIGNED_BITS[kind]
    reason = f"out of range for {bits}-bit signed integer"
    value = _int_literal(text, kind, reason)
    if not -(2 ** (bits - 1)) <= value < 2 ** (bits - 1):
        raise ConversionError(kind, text, reason=reason)
    return value


def _parse_unsigned(text: str, kind: Kind) -> int:
    if not _UNSIGNED.fullmatch(text):
        raise ConversionError(kind, text)
    bits = UNSIGNED_BITS[kind]
    reason = f"out of range for {bits}-bit unsigned integer"
    value = _int_literal(text, kind, reason)
    if value >= 2**bits:
        raise ConversionError(kind, text, reason=reason)
    return value


def to_float32(value: float) -> float:
    """Round ``value`` to the nearest 32-bit float, raising OverflowError when it doesn't fit."""
    if math.isinf(value) or math.isnan(value):
        return value
    return struct.unpack("f", struct.pack("f", value))[0]


def shortest_float32(value: float) -> float:
    """Shortest decimal that still rounds to the same 32-bit float."""
    if math.isinf(value) or math.isnan(value) or value == 0:
        return value
    for digits in range(1, 10):
        candidate = float(f"{value:.{digits}g}")
        if to_float32(candidate) == value:
            return candidate
    return value


def _float_value(part: str, kind: Kind, bits: int, text: str) -> float:
    try:
        value = float.fromhex(part) if _HEX_PREFIX.match(part) else float(part)
        if math.isinf(value) and "inf" not in part.lower():
            raise OverflowError(part)
        if bits == 32:
            value = to_float32(value)
    except OverflowError:
        raise ConversionError(kind, text, reason=f"out of range for {bits}-bit float") from None
    return value


def _parse_float(text: str, kind: Kind) -> float:
    if not _FLOAT.fullmatch(text):
        raise ConversionError(kind, text)
    return _float_value(text, kind, 32 if kind is Kind.FLOAT32 else 64, text)


def _parse_complex(text: str, kind: Kind) -> complex:
    body = text
    if body.startswith("(") and body.endswith(")"):
        body = body[1:-1]
    match = _COMPLEX.fullmatch(body)
    if match is None:
        raise ConversionError(kind, text)

    real = match.group("real") or match.group("real_only") or "0"
    imag = match.group("imag") or match.group("imag_only") or "0"
    bits = 32 if kind is Kind.COMPLEX64 else 64
    return complex(_float_value(real, kind, bits, text), _float_value(imag, kind, bits, text))


def _parse_duration(text: str, kind: Kind) -> timedelta:
    try:
        return parse_duration(text)
    except DurationSyntaxError as exc:
        raise ConversionError(kind, text, reason=str(exc)) from None


def _format_float32(value: float) -> str:
    return repr(shortest_float32(to_float32(float(value))))


def _format_complex64(value: complex) -> str:
    value = complex(value)
    return str(complex(shortest_float32(to_float32(value.real)), shortest_float32(to_float32(value.imag))))


_DECODERS: Dict[Kind, Callable[[str, Kind], Any]] = {
    Kind.TEXT: lambda text, kind: text,
    Kind.BOOL: _parse_bool,
    **{kind: _parse_signed for kind in SIGNED_BITS},
    **{kind: _parse_unsigned for kind in UNSIGNED_BITS},
    Kind.FLOAT32: _parse_float,
    Kind.FLOAT64: _parse_float,
    Kind.COMPLEX64: _parse_complex,
    Kind.COMPLEX128: _parse_complex,
    Kind.DURATION: _parse_duration,
}

_ENCODERS: Dict[Kind, Callable[[Any], str]] = {
    Kind.TEXT: str,
    Kind.BOOL: lambda value: "true" if value else "false",
    **{kind: str for kind in (*SIGNED_BITS, *UNSIGNED_BITS)},
    Kind.FLOAT32: _format_float32,
    Kind.FLOAT64: lambda value: repr(float(value)),
    Kind.COMPLEX64: _format_complex64,
    Kind.COMPLEX128: lambda value: str(complex(value)),
    Kind.DURATION: format_duration,
}


def decode_scalar(text: str, kind: Kind) -> Any:
    """Convert one metadata string to the Python value for ``kind``.

    Raises:
        ConversionError: ``text`` is not a valid literal for ``kind``.
        UnsupportedTypeError: ``kind`` has no scalar decoder.
    """
    try:
        decoder = _DECODERS[kind]
    except KeyError:
        raise UnsupportedTypeError(kind) from None
    return decoder(text, kind)


def encode_scalar(value: Any, kind: Kind) -> str:
    """Render ``value`` as the metadata string for ``kind``.

    A value whose Python type does not fit ``kind`` (``None``, a bool in an
    integer field, ...) raises UnsupportedTypeError. A value of the right type
    that the kind cannot hold (``300`` for ``int8``) raises ConversionError,
    so nothing gets written that a later decode would refuse.
    """
    try:
        encoder = _ENCODERS[kind]
    except KeyError:
        raise UnsupportedTypeError(kind) from None
    if not isinstance(value, PYTHON_TYPES[kind]) or (isinstance(value, bool) and kind is not Kind.BOOL):
        raise UnsupportedTypeError(type(value))

    try:
        text = encoder(value)
    except OverflowError:
        raise ConversionError(kind, repr(value), reason=f"out of range for {kind.value}") from None
    if kind in SIGNED_BITS or kind in UNSIGNED_BITS or kind is Kind.DURATION:
        # range check
        decode_scalar(text, kind)
    return text
