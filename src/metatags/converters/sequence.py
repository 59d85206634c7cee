from __future__ import annotations

from typing import Any, Iterable, List

from metatags.converters.scalar import decode_scalar, encode_scalar
from metatags.core.exceptions import ConversionError, UnsupportedTypeError
from metatags.core.kinds import SEQUENCE_KINDS, Kind

DEFAULT_SEPARATOR = ","


def normalize_separator(separator: str | None) -> str:
    return separator or DEFAULT_SEPARATOR


def _check_element_kind(kind: Kind) -> None:
    if kind not in SEQUENCE_KINDS:
        raise UnsupportedTypeError(f"list[{getattr(kind, 'value', kind)}]")


def decode_sequence(text: str, kind: Kind, separator: str | None = DEFAULT_SEPARATOR) -> List[Any]:
    """Split ``text`` on ``separator`` and decode every element as ``kind``.

    An empty string is an empty list. A text list holding one empty string
    encodes to ``""`` as well, so ``[""]`` reads back as ``[]``. The first
    element that fails to decode aborts the whole sequence; the error carries
    its index.
    """
    _check_element_kind(kind)
    if text == "":
        return []

    values: List[Any] = []
    for index, token in enumerate(text.split(normalize_separator(separator))):
        try:
            values.append(decode_scalar(token, kind))
        except ConversionError as exc:
            raise ConversionError(kind, token, index=index, reason=exc.reason) from None
    return values


def encode_sequence(values: Iterable[Any], kind: Kind, separator: str | None = DEFAULT_SEPARATOR) -> str:
    _check_element_kind(kind)
    if not isinstance(values, (list, tuple)):
        raise UnsupportedTypeError(type(values))
    return normalize_separator(separator).join(encode_scalar(value, kind) for value in values)
