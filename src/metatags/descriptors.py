"""Field descriptors: which record fields are tagged, and how.

A tag lives in field metadata under the ``annotation`` or ``label`` key::

    @dataclass
    class Data:
        id: int = annotation("id")
        age: Uint = label("age")
        skills: List[str] = label("skills", default_factory=list)

    class Data(BaseModel):
        id: int = Field(0, json_schema_extra=tags(annotation="id"))

When both keys are present the annotation wins and the label is ignored.
"""

from __future__ import annotations

import dataclasses
import typing
from dataclasses import dataclass
from typing import Any, Dict, Iterator, List, Literal, Mapping, Optional, Tuple

from pydantic import BaseModel

from metatags.core.exceptions import UnsupportedTypeError
from metatags.core.kinds import DEFAULT_KINDS, SEQUENCE_KINDS, Kind, Shape

ANNOTATION = "annotation"
LABEL = "label"

TagKind = Literal["annotation", "label"]


def tags(*, annotation: Optional[str] = None, label: Optional[str] = None) -> Dict[str, str]:
    """Field metadata mapping for a dataclass ``metadata=`` or pydantic ``json_schema_extra=``."""
    metadata: Dict[str, str] = {}
    if annotation is not None:
        metadata[ANNOTATION] = annotation
    if label is not None:
        metadata[LABEL] = label
    return metadata


def annotation(name: str, **kwargs: Any) -> Any:
    """Dataclass field stored in the annotations dictionary under ``name``."""
    return dataclasses.field(metadata=tags(annotation=name), **kwargs)


def label(name: str, **kwargs: Any) -> Any:
    """Dataclass field stored in the labels dictionary under ``name``."""
    return dataclasses.field(metadata=tags(label=name), **kwargs)


@dataclass(frozen=True)
class FieldDescriptor:
    name: str
    tag_kind: TagKind
    tag_name: str
    shape: Shape
    kind: Kind

    def key(self, prefix: str) -> str:
        return f"{prefix}/{self.tag_name}"


def resolve_tag(metadata: Optional[Mapping[str, Any]]) -> Optional[Tuple[TagKind, str]]:
    """Pick the tag of one field: annotation first, then label, else ``None``."""
    if not metadata:
        return None
    if ANNOTATION in metadata:
        return "annotation", metadata[ANNOTATION]
    if LABEL in metadata:
        return "label", metadata[LABEL]
    return None


def _scalar_kind(hint: Any) -> Optional[Kind]:
    if typing.get_origin(hint) is typing.Annotated:
        base, *extras = typing.get_args(hint)
        kinds = [extra for extra in extras if isinstance(extra, Kind)]
        if kinds:
            return kinds[-1]
        return _scalar_kind(base)
    if isinstance(hint, type):
        return DEFAULT_KINDS.get(hint)
    return None


def resolve_kind(hint: Any, field_name: Optional[str] = None) -> Tuple[Shape, Kind]:
    """Map a field annotation onto ``(shape, kind)``.

    Raises:
        UnsupportedTypeError: nested records, optionals, mappings and lists of
            anything outside the sequence element kinds.
    """
    kind = _scalar_kind(hint)
    if kind is not None:
        return "scalar", kind

    # Annotated[List[...], ...] carries no kind of its own
    if typing.get_origin(hint) is typing.Annotated:
        hint = typing.get_args(hint)[0]

    if typing.get_origin(hint) is list:
        args = typing.get_args(hint)
        element = _scalar_kind(args[0]) if args else None
        if element is not None and element in SEQUENCE_KINDS:
            return "sequence", element

    raise UnsupportedTypeError(hint, field=field_name)


DeclaredField = Tuple[str, Optional[Mapping[str, Any]], Any]


def _declared_fields(record_type: type) -> List[DeclaredField]:
    """``(name, tag metadata, type hint)`` for every field, in declaration order."""
    if dataclasses.is_dataclass(record_type):
        hints = typing.get_type_hints(record_type, include_extras=True)
        return [(f.name, f.metadata, hints.get(f.name)) for f in dataclasses.fields(record_type)]

    if issubclass(record_type, BaseModel):
        fields: List[DeclaredField] = []
        for name, info in record_type.model_fields.items():
            extra = info.json_schema_extra
            # pydantic strips Annotated[...] into info.metadata; put the kind back
            hint = info.annotation
            kinds = [item for item in info.metadata if isinstance(item, Kind)]
            if kinds:
                hint = typing.Annotated[hint, kinds[-1]]
            fields.append((name, extra if isinstance(extra, Mapping) else None, hint))
        return fields

    raise TypeError(f"{record_type.__name__} is neither a dataclass nor a pydantic model")


def is_record_type(obj: Any) -> bool:
    return isinstance(obj, type) and (
        dataclasses.is_dataclass(obj) or issubclass(obj, BaseModel)
    )


def describe_fields(record: Any) -> Iterator[FieldDescriptor]:
    """Yield a descriptor for every tagged field, in declaration order.

    Accepts a record instance or its class. Untagged fields are skipped
    without looking at their type.
    """
    record_type = record if isinstance(record, type) else type(record)

    for name, metadata, hint in _declared_fields(record_type):
        tag = resolve_tag(metadata)
        if tag is None:
            continue
        shape, kind = resolve_kind(hint, field_name=name)
        yield FieldDescriptor(name=name, tag_kind=tag[0], tag_name=tag[1], shape=shape, kind=kind)
