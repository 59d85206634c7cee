"""metatags.

Typed records persisted as Kubernetes-style labels and annotations.

Fields tagged ``annotation`` or ``label`` are written as strings under
``<prefix>/<tag name>`` keys and parsed back into their declared types.

Public API for applications storing configuration or state on object metadata.
"""

from metatags.codec import decode, decode_values, encode, load
from metatags.core.exceptions import (
    ConversionError,
    MetatagsError,
    NotRecordError,
    UnsupportedTypeError,
    ValueMissingError,
)
from metatags.core.kinds import (
    Complex64,
    Complex128,
    Duration,
    Float32,
    Float64,
    Int8,
    Int16,
    Int32,
    Int64,
    Kind,
    Uint,
    Uint8,
    Uint16,
    Uint32,
    Uint64,
)
from metatags.descriptors import FieldDescriptor, annotation, describe_fields, label, tags
from metatags.models.codec_options import CodecOptions
from metatags.models.metadata import MetadataContainer, ObjectMeta

__version__ = "0.1.0"

__all__ = [
    "encode",
    "decode",
    "decode_values",
    "load",
    "describe_fields",
    "FieldDescriptor",
    "annotation",
    "label",
    "tags",
    "CodecOptions",
    "ObjectMeta",
    "MetadataContainer",
    "Kind",
    "Int8",
    "Int16",
    "Int32",
    "Int64",
    "Uint",
    "Uint8",
    "Uint16",
    "Uint32",
    "Uint64",
    "Float32",
    "Float64",
    "Complex64",
    "Complex128",
    "Duration",
    "MetatagsError",
    "NotRecordError",
    "ValueMissingError",
    "ConversionError",
    "UnsupportedTypeError",
]
