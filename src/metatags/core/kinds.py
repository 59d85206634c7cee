"""Semantic kinds the codec understands, and the annotations that select them.

Python has one ``int``, one ``float`` and one ``complex``; the width a field is
stored at is chosen with the ``Annotated`` aliases below::

    @dataclass
    class Spec:
        replicas: Uint8 = label("replicas")
        ratio: Float32 = annotation("ratio")
"""

from __future__ import annotations

from datetime import timedelta
from enum import Enum
from typing import Annotated, Dict, FrozenSet, Literal, Tuple


class Kind(str, Enum):
    TEXT = "text"
    BOOL = "bool"
    INT = "int"
    INT8 = "int8"
    INT16 = "int16"
    INT32 = "int32"
    INT64 = "int64"
    UINT = "uint"
    UINT8 = "uint8"
    UINT16 = "uint16"
    UINT32 = "uint32"
    UINT64 = "uint64"
    FLOAT32 = "float32"
    FLOAT64 = "float64"
    COMPLEX64 = "complex64"
    COMPLEX128 = "complex128"
    DURATION = "duration"


Shape = Literal["scalar", "sequence"]


Int8 = Annotated[int, Kind.INT8]
Int16 = Annotated[int, Kind.INT16]
Int32 = Annotated[int, Kind.INT32]
Int64 = Annotated[int, Kind.INT64]
Uint = Annotated[int, Kind.UINT]
Uint8 = Annotated[int, Kind.UINT8]
Uint16 = Annotated[int, Kind.UINT16]
Uint32 = Annotated[int, Kind.UINT32]
Uint64 = Annotated[int, Kind.UINT64]
Float32 = Annotated[float, Kind.FLOAT32]
Float64 = Annotated[float, Kind.FLOAT64]
Complex64 = Annotated[complex, Kind.COMPLEX64]
Complex128 = Annotated[complex, Kind.COMPLEX128]
Duration = Annotated[timedelta, Kind.DURATION]


# Plain annotations and the kind they stand for. ``int`` parses with 32-bit bounds.
DEFAULT_KINDS: Dict[type, Kind] = {
    str: Kind.TEXT,
    bool: Kind.BOOL,
    int: Kind.INT,
    float: Kind.FLOAT64,
    complex: Kind.COMPLEX128,
    timedelta: Kind.DURATION,
}

SIGNED_BITS: Dict[Kind, int] = {
    Kind.INT: 32,
    Kind.INT8: 8,
    Kind.INT16: 16,
    Kind.INT32: 32,
    Kind.INT64: 64,
}

UNSIGNED_BITS: Dict[Kind, int] = {
    Kind.UINT: 32,
    Kind.UINT8: 8,
    Kind.UINT16: 16,
    Kind.UINT32: 32,
    Kind.UINT64: 64,
}

# Python types a kind's values may have on encode. ``bool`` is refused for
# every kind but BOOL even though it subclasses ``int``.
PYTHON_TYPES: Dict[Kind, Tuple[type, ...]] = {
    **{kind: (int,) for kind in (*SIGNED_BITS, *UNSIGNED_BITS)},
    Kind.TEXT: (str,),
    Kind.BOOL: (bool,),
    Kind.FLOAT32: (float, int),
    Kind.FLOAT64: (float, int),
    Kind.COMPLEX64: (complex, float, int),
    Kind.COMPLEX128: (complex, float, int),
    Kind.DURATION: (timedelta,),
}

# Element kinds a list field may hold.
SEQUENCE_KINDS: FrozenSet[Kind] = frozenset(
    {
        Kind.TEXT,
        Kind.BOOL,
        Kind.INT,
        Kind.UINT,
        Kind.INT64,
        Kind.UINT64,
        Kind.FLOAT32,
        Kind.FLOAT64,
        Kind.DURATION,
    }
)
