from __future__ import annotations

from typing import Any, Dict, Mapping, Optional, Type, TypeVar, Union

from pydantic import BaseModel

from metatags.converters.scalar import decode_scalar, encode_scalar
from metatags.converters.sequence import decode_sequence, encode_sequence
from metatags.core.exceptions import (
    ConversionError,
    NotRecordError,
    UnsupportedTypeError,
    ValueMissingError,
)
from metatags.core.logger import get_logger, push_prefix, reset_prefix
from metatags.descriptors import FieldDescriptor, describe_fields, is_record_type
from metatags.models.codec_options import CodecOptions
from metatags.models.metadata import MetadataContainer

R = TypeVar("R")

OptionsLike = Union[CodecOptions, Dict[str, Any], None]

logger = get_logger(__name__)


def _is_frozen(record: Any) -> bool:
    if isinstance(record, BaseModel):
        return bool(record.model_config.get("frozen"))
    return type(record).__dataclass_params__.frozen


def _check_record(record: Any, *, mutable: bool) -> None:
    if isinstance(record, type) or not is_record_type(type(record)):
        raise NotRecordError(record)
    if mutable and _is_frozen(record):
        raise NotRecordError(record, reason="expected a mutable record instance")


def _dictionary(metadata: MetadataContainer, descriptor: FieldDescriptor) -> Optional[Dict[str, str]]:
    if descriptor.tag_kind == "annotation":
        return metadata.annotations
    return metadata.labels


def _decode_field(
    metadata: MetadataContainer,
    descriptor: FieldDescriptor,
    prefix: str,
    options: CodecOptions,
) -> Any:
    key = descriptor.key(prefix)
    dictionary: Mapping[str, str] = _dictionary(metadata, descriptor) or {}
    if key not in dictionary:
        raise ValueMissingError(key=key, field=descriptor.name)

    text = dictionary[key]
    try:
        if descriptor.shape == "sequence":
            return decode_sequence(text, descriptor.kind, options.separator)
        return decode_scalar(text, descriptor.kind)
    except ConversionError as exc:
        raise exc.located(key=key, field=descriptor.name) from None


def _encode_field(record: Any, descriptor: FieldDescriptor, prefix: str, options: CodecOptions) -> str:
    value = getattr(record, descriptor.name)
    try:
        if descriptor.shape == "sequence":
            return encode_sequence(value, descriptor.kind, options.separator)
        return encode_scalar(value, descriptor.kind)
    except ConversionError as exc:
        raise exc.located(key=descriptor.key(prefix), field=descriptor.name) from None
    except UnsupportedTypeError as exc:
        raise UnsupportedTypeError(exc.type, field=descriptor.name) from None


def decode_values(
    metadata: MetadataContainer,
    record_type: type,
    prefix: str,
    *,
    options: OptionsLike = None,
) -> Dict[str, Any]:
    """Decode every tagged field of ``record_type`` into a ``{field name: value}`` dict.

    Nothing is assigned anywhere; this is the building block for both
    :func:`decode` and :func:`load`.

    Raises:
        ValueMissingError: a tagged field's key is absent.
        ConversionError: a value does not parse as its field's kind.
        UnsupportedTypeError: a tagged field has an unsupported type.
    """
    opts = CodecOptions.coerce(options)
    return {
        descriptor.name: _decode_field(metadata, descriptor, prefix, opts)
        for descriptor in describe_fields(record_type)
    }


def decode(
    metadata: MetadataContainer,
    record: Any,
    prefix: str,
    *,
    options: OptionsLike = None,
) -> None:
    """
    Populate ``record`` from ``metadata`` labels and annotations stored under ``prefix``.

    With the default ``atomic=True`` option every field is decoded before any is
    assigned, so a failure leaves ``record`` untouched. With ``atomic=False``
    fields are assigned one by one and those before the failing field keep
    their new values.

    Args:
        metadata: Object with ``labels`` and ``annotations`` dictionaries.
        record: Mutable dataclass or pydantic model instance.
        prefix: Namespace joined to every tag name as ``prefix/name``.
        options: ``CodecOptions`` or a dict of its fields.

    Raises:
        NotRecordError: ``record`` is not a mutable record instance.
        ValueMissingError, ConversionError, UnsupportedTypeError: see
            :func:`decode_values`.

    Example:
        >>> meta = ObjectMeta(annotations={"prefix/id": "1"})
        >>> data = Data()
        >>> decode(meta, data, "prefix")
    """
    _check_record(record, mutable=True)
    opts = CodecOptions.coerce(options)

    token = push_prefix(prefix)
    try:
        if opts.atomic:
            values = decode_values(metadata, type(record), prefix, options=opts)
            for name, value in values.items():
                setattr(record, name, value)
            count = len(values)
        else:
            count = 0
            for descriptor in describe_fields(record):
                setattr(record, descriptor.name, _decode_field(metadata, descriptor, prefix, opts))
                count += 1
        logger.debug(f"Decoded {count} tagged fields into {type(record).__name__}")
    finally:
        reset_prefix(token)


def load(
    metadata: MetadataContainer,
    record_type: Type[R],
    prefix: str,
    *,
    options: OptionsLike = None,
) -> R:
    """Build a new ``record_type`` instance from ``metadata``.

    Untagged fields take their declared defaults.
    """
    if not is_record_type(record_type):
        raise NotRecordError(record_type, reason="expected a dataclass or pydantic model class")

    token = push_prefix(prefix)
    try:
        values = decode_values(metadata, record_type, prefix, options=options)
        logger.debug(f"Loaded {len(values)} tagged fields into a new {record_type.__name__}")
    finally:
        reset_prefix(token)
    return record_type(**values)


def encode(
    record: Any,
    metadata: MetadataContainer,
    prefix: str,
    *,
    options: OptionsLike = None,
) -> None:
    """
    Store every tagged field of ``record`` into ``metadata`` under ``prefix``.

    Missing (``None``) dictionaries are replaced with empty ones first. Existing
    keys are overwritten; keys the record doesn't own are left alone. On error
    the dictionaries keep whatever was written before the failing field.

    Raises:
        NotRecordError: ``record`` is not a record instance.
        UnsupportedTypeError: a tagged field's type, or its current value,
            is not supported.
        ConversionError: a value is out of range for its kind.
    """
    _check_record(record, mutable=False)
    opts = CodecOptions.coerce(options)

    if metadata.labels is None:
        metadata.labels = {}
    if metadata.annotations is None:
        metadata.annotations = {}

    token = push_prefix(prefix)
    try:
        count = 0
        for descriptor in describe_fields(record):
            _dictionary(metadata, descriptor)[descriptor.key(prefix)] = _encode_field(
                record, descriptor, prefix, opts
            )
            count += 1
        logger.debug(f"Encoded {count} tagged fields from {type(record).__name__}")
    finally:
        reset_prefix(token)
