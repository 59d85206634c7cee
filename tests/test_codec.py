from dataclasses import dataclass, field
from datetime import timedelta
from typing import List

import pytest
from pydantic import BaseModel, ConfigDict, Field

from metatags import (
    CodecOptions,
    Complex64,
    Complex128,
    ConversionError,
    Float32,
    Int8,
    Int16,
    Int32,
    Int64,
    MetatagsError,
    NotRecordError,
    ObjectMeta,
    Uint,
    Uint8,
    Uint16,
    Uint32,
    Uint64,
    UnsupportedTypeError,
    ValueMissingError,
    annotation,
    decode,
    decode_values,
    encode,
    label,
    load,
    tags,
)


@dataclass
class Data:
    ID: int = annotation("id", default=0)
    Name: str = annotation("name", default="")
    Age: Uint = label("age", default=0)
    Skills: List[str] = label("skills", default_factory=list)


@dataclass
class AllKinds:
    text: str = annotation("text", default="")
    flag: bool = label("flag", default=False)
    i: int = label("i", default=0)
    i8: Int8 = label("i8", default=0)
    i16: Int16 = label("i16", default=0)
    i32: Int32 = label("i32", default=0)
    i64: Int64 = label("i64", default=0)
    u: Uint = label("u", default=0)
    u8: Uint8 = label("u8", default=0)
    u16: Uint16 = label("u16", default=0)
    u32: Uint32 = label("u32", default=0)
    u64: Uint64 = label("u64", default=0)
    f32: Float32 = annotation("f32", default=0.0)
    f64: float = annotation("f64", default=0.0)
    c64: Complex64 = annotation("c64", default=0j)
    c128: Complex128 = annotation("c128", default=0j)
    wait: timedelta = annotation("wait", default=timedelta(0))
    texts: List[str] = annotation("texts", default_factory=list)
    flags: List[bool] = label("flags", default_factory=list)
    ints: List[int] = label("ints", default_factory=list)
    uints: List[Uint] = label("uints", default_factory=list)
    int64s: List[Int64] = label("int64s", default_factory=list)
    uint64s: List[Uint64] = label("uint64s", default_factory=list)
    float32s: List[Float32] = annotation("float32s", default_factory=list)
    float64s: List[float] = annotation("float64s", default_factory=list)
    waits: List[timedelta] = annotation("waits", default_factory=list)


@dataclass
class Both:
    value: str = field(default="", metadata=tags(annotation="x", label="y"))


@dataclass
class Counts:
    ints: List[int] = label("ints", default_factory=list)


@dataclass
class Inner:
    x: int = 0


@dataclass
class Outer:
    inner: Inner = annotation("inner", default_factory=Inner)


@dataclass(frozen=True)
class FrozenData:
    ID: int = annotation("id", default=0)


class Settings(BaseModel):
    replicas: Uint8 = Field(1, json_schema_extra=tags(label="replicas"))
    timeout: timedelta = Field(timedelta(seconds=30), json_schema_extra=tags(annotation="timeout"))
    zones: List[str] = Field(default_factory=list, json_schema_extra=tags(label="zones"))
    comment: str = "untagged"


class FrozenSettings(BaseModel):
    model_config = ConfigDict(frozen=True)

    replicas: Uint8 = Field(1, json_schema_extra=tags(label="replicas"))


def _scenario_metadata() -> ObjectMeta:
    return ObjectMeta(
        annotations={"prefix/id": "1", "prefix/name": "John"},
        labels={"prefix/age": "30", "prefix/skills": "cooking,swimming,driving"},
    )


def _all_kinds() -> AllKinds:
    return AllKinds(
        text="hello, world",
        flag=True,
        i=-(2**31),
        i8=-128,
        i16=32767,
        i32=-5,
        i64=2**63 - 1,
        u=2**32 - 1,
        u8=255,
        u16=65535,
        u32=7,
        u64=2**64 - 1,
        f32=0.15625,
        f64=0.1,
        c64=complex(1.5, -2),
        c128=complex(0.1, -3e-5),
        wait=timedelta(hours=1, microseconds=5),
        texts=["a", "b c"],
        flags=[True, False],
        ints=[1, -2],
        uints=[0, 4294967295],
        int64s=[-(2**63)],
        uint64s=[2**64 - 1, 0],
        float32s=[0.5, -1.25],
        float64s=[1e-300, 2.5],
        waits=[timedelta(seconds=1), timedelta(minutes=1, seconds=30)],
    )


def test_encode_writes_annotations_and_labels_under_prefix():
    meta = ObjectMeta()
    record = Data(ID=1, Name="John", Age=30, Skills=["cooking", "swimming", "driving"])

    encode(record, meta, "prefix")

    assert meta.annotations == {"prefix/id": "1", "prefix/name": "John"}
    assert meta.labels == {"prefix/age": "30", "prefix/skills": "cooking,swimming,driving"}


def test_decode_populates_record_from_metadata():
    record = Data()

    decode(_scenario_metadata(), record, "prefix")

    assert record == Data(ID=1, Name="John", Age=30, Skills=["cooking", "swimming", "driving"])


def test_decode_of_encoded_record_reproduces_it():
    original = Data(ID=1, Name="John", Age=30, Skills=["cooking", "swimming", "driving"])
    meta = ObjectMeta()
    encode(original, meta, "prefix")

    restored = Data()
    decode(meta, restored, "prefix")

    assert restored == original


def test_round_trip_covers_every_scalar_and_sequence_kind():
    original = _all_kinds()
    meta = ObjectMeta()

    encode(original, meta, "kinds.example.com")
    restored = load(meta, AllKinds, "kinds.example.com")

    assert restored == original


def test_encode_formats_every_kind():
    meta = ObjectMeta()
    encode(_all_kinds(), meta, "p")

    assert meta.labels["p/flag"] == "true"
    assert meta.labels["p/i8"] == "-128"
    assert meta.labels["p/u64"] == "18446744073709551615"
    assert meta.labels["p/flags"] == "true,false"
    assert meta.labels["p/uint64s"] == "18446744073709551615,0"
    assert meta.annotations["p/f32"] == "0.15625"
    assert meta.annotations["p/c64"] == "(1.5-2j)"
    assert meta.annotations["p/wait"] == "1h0m0.000005s"
    assert meta.annotations["p/waits"] == "1s,1m30s"


def test_encode_initializes_missing_dictionaries():
    meta = ObjectMeta(labels=None, annotations=None)

    encode(FrozenData(ID=3), meta, "p")

    assert meta.annotations == {"p/id": "3"}
    assert meta.labels == {}


def test_encode_overwrites_own_keys_and_keeps_others():
    meta = ObjectMeta(labels={"app": "web", "prefix/age": "1"}, annotations={"prefix/id": "9"})

    encode(Data(ID=2, Name="Ann", Age=41), meta, "prefix")

    assert meta.labels == {"app": "web", "prefix/age": "41", "prefix/skills": ""}
    assert meta.annotations == {"prefix/id": "2", "prefix/name": "Ann"}


def test_encode_accepts_any_container_with_dictionaries():
    class Meta:
        labels = None
        annotations = None

    meta = Meta()
    encode(Data(ID=1, Name="John"), meta, "prefix")

    assert meta.annotations["prefix/id"] == "1"
    assert meta.labels["prefix/age"] == "0"


def test_sequence_field_encodes_to_comma_joined_value_and_back():
    meta = ObjectMeta()
    encode(Data(Skills=["cooking", "swimming", "driving"]), meta, "prefix")

    assert meta.labels["prefix/skills"] == "cooking,swimming,driving"
    assert load(meta, Data, "prefix").Skills == ["cooking", "swimming", "driving"]


def test_annotation_tag_wins_over_label_tag():
    meta = ObjectMeta()
    encode(Both(value="v"), meta, "prefix")

    assert meta.annotations == {"prefix/x": "v"}
    assert meta.labels == {}

    record = Both()
    decode(ObjectMeta(annotations={"prefix/x": "right"}, labels={"prefix/y": "wrong"}), record, "prefix")
    assert record.value == "right"


def test_annotation_tag_never_falls_back_to_label_value():
    with pytest.raises(ValueMissingError) as exc:
        decode(ObjectMeta(labels={"prefix/y": "only label"}), Both(), "prefix")

    assert exc.value.key == "prefix/x"


def test_decode_missing_key_raises_value_missing():
    meta = _scenario_metadata()
    del meta.annotations["prefix/name"]

    with pytest.raises(ValueMissingError) as exc:
        decode(meta, Data(), "prefix")

    assert exc.value.key == "prefix/name"
    assert exc.value.field == "Name"
    assert "prefix/name" in str(exc.value)


def test_decode_with_none_dictionaries_reports_missing_value():
    with pytest.raises(ValueMissingError):
        decode(ObjectMeta(), Data(), "prefix")


def test_atomic_decode_leaves_record_untouched_on_failure():
    meta = _scenario_metadata()
    del meta.labels["prefix/skills"]
    record = Data(ID=5, Name="old", Age=9)

    with pytest.raises(ValueMissingError):
        decode(meta, record, "prefix")

    assert record == Data(ID=5, Name="old", Age=9)


def test_non_atomic_decode_keeps_fields_set_before_failure():
    meta = _scenario_metadata()
    del meta.labels["prefix/age"]
    record = Data(ID=5, Name="old", Age=9, Skills=["x"])

    with pytest.raises(ValueMissingError):
        decode(meta, record, "prefix", options={"atomic": False})

    # fields before the missing one were assigned, the rest were not
    assert record.ID == 1
    assert record.Name == "John"
    assert record.Age == 9
    assert record.Skills == ["x"]


def test_decode_malformed_value_raises_conversion_error():
    meta = _scenario_metadata()
    meta.annotations["prefix/id"] = "abc"

    with pytest.raises(ConversionError) as exc:
        decode(meta, Data(), "prefix")

    assert exc.value.key == "prefix/id"
    assert exc.value.field == "ID"
    assert exc.value.value == "abc"


def test_decode_oversized_integer_is_located_conversion_error():
    meta = _scenario_metadata()
    meta.annotations["prefix/id"] = "9" * 5000

    with pytest.raises(MetatagsError) as exc:
        decode(meta, Data(), "prefix")

    assert isinstance(exc.value, ConversionError)
    assert exc.value.key == "prefix/id"
    assert exc.value.field == "ID"


def test_decode_bad_sequence_element_reports_index_and_key():
    meta = ObjectMeta(labels={"p/ints": "1,2,three"})

    with pytest.raises(ConversionError) as exc:
        decode_values(meta, Counts, "p")

    assert exc.value.key == "p/ints"
    assert exc.value.field == "ints"
    assert exc.value.index == 2
    assert exc.value.value == "three"


def test_nested_record_field_is_unsupported_on_encode():
    with pytest.raises(UnsupportedTypeError) as exc:
        encode(Outer(), ObjectMeta(), "prefix")

    assert exc.value.field == "inner"


def test_nested_record_field_is_unsupported_on_decode():
    with pytest.raises(UnsupportedTypeError):
        decode(ObjectMeta(annotations={"prefix/inner": "x"}), Outer(), "prefix")


def test_encode_value_of_wrong_type_is_unsupported():
    meta = ObjectMeta()

    with pytest.raises(UnsupportedTypeError) as exc:
        encode(Data(ID=None), meta, "prefix")

    assert exc.value.field == "ID"
    assert meta.annotations == {}


def test_encode_out_of_range_value_raises_conversion_error():
    meta = ObjectMeta()

    with pytest.raises(ConversionError) as exc:
        encode(Data(ID=1, Name="n", Age=-1), meta, "prefix")

    assert exc.value.key == "prefix/age"
    # fields before the failing one stay written
    assert meta.annotations == {"prefix/id": "1", "prefix/name": "n"}


@pytest.mark.parametrize("record", [{"id": 1}, Data, 42, None, object()])
def test_decode_rejects_non_record_arguments(record):
    with pytest.raises(NotRecordError):
        decode(_scenario_metadata(), record, "prefix")


@pytest.mark.parametrize("record", [{"id": 1}, Data, "text"])
def test_encode_rejects_non_record_arguments(record):
    with pytest.raises(NotRecordError):
        encode(record, ObjectMeta(), "prefix")


def test_decode_rejects_frozen_records():
    with pytest.raises(NotRecordError, match="mutable"):
        decode(ObjectMeta(annotations={"p/id": "1"}), FrozenData(), "p")
    with pytest.raises(NotRecordError, match="mutable"):
        decode(ObjectMeta(labels={"p/replicas": "1"}), FrozenSettings(), "p")


def test_encode_accepts_frozen_records():
    meta = ObjectMeta()
    encode(FrozenSettings(replicas=4), meta, "p")

    assert meta.labels == {"p/replicas": "4"}


def test_custom_separator_is_used_for_both_directions():
    meta = ObjectMeta()
    options = CodecOptions(separator=";")

    encode(Data(Skills=["a,1", "b"]), meta, "prefix", options=options)
    assert meta.labels["prefix/skills"] == "a,1;b"

    assert load(meta, Data, "prefix", options=options).Skills == ["a,1", "b"]


def test_empty_sequence_round_trips():
    meta = ObjectMeta()
    encode(Data(Skills=[]), meta, "prefix")

    assert meta.labels["prefix/skills"] == ""
    assert load(meta, Data, "prefix").Skills == []


def test_decode_values_returns_plain_mapping():
    values = decode_values(_scenario_metadata(), Data, "prefix")

    assert values == {"ID": 1, "Name": "John", "Age": 30, "Skills": ["cooking", "swimming", "driving"]}


def test_load_builds_new_record():
    record = load(_scenario_metadata(), Data, "prefix")

    assert isinstance(record, Data)
    assert record.Age == 30


def test_load_rejects_non_record_types():
    with pytest.raises(NotRecordError):
        load(_scenario_metadata(), dict, "prefix")


def test_pydantic_model_round_trip():
    meta = ObjectMeta(name="web")
    original = Settings(replicas=3, timeout=timedelta(minutes=1, seconds=30), zones=["a", "b"], comment="kept local")

    encode(original, meta, "example.com")

    assert meta.labels == {"example.com/replicas": "3", "example.com/zones": "a,b"}
    assert meta.annotations == {"example.com/timeout": "1m30s"}

    restored = load(meta, Settings, "example.com")
    assert restored.replicas == 3
    assert restored.timeout == timedelta(seconds=90)
    assert restored.zones == ["a", "b"]
    assert restored.comment == "untagged"


def test_decode_into_existing_pydantic_model():
    record = Settings()
    meta = ObjectMeta(
        labels={"example.com/replicas": "7", "example.com/zones": "x"},
        annotations={"example.com/timeout": "2s"},
    )

    decode(meta, record, "example.com")

    assert record.replicas == 7
    assert record.timeout == timedelta(seconds=2)
    assert record.zones == ["x"]


def test_decode_pydantic_uint8_out_of_range_raises():
    meta = ObjectMeta(
        labels={"example.com/replicas": "256", "example.com/zones": ""},
        annotations={"example.com/timeout": "1s"},
    )

    with pytest.raises(ConversionError, match="8-bit unsigned"):
        load(meta, Settings, "example.com")
