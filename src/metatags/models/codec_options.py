"""Options shared by encode and decode."""

from __future__ import annotations

from typing import Any, Dict, Union

from pydantic import BaseModel, ConfigDict, field_validator

from metatags.converters.sequence import DEFAULT_SEPARATOR, normalize_separator


class CodecOptions(BaseModel):
    model_config = ConfigDict(frozen=True)

    separator: str = DEFAULT_SEPARATOR  # joins list elements; "" means ","
    atomic: bool = True  # decode assigns fields only once every field decoded

    @field_validator("separator")
    @classmethod
    def _normalize_separator(cls, v: str) -> str:
        return normalize_separator(v)

    @classmethod
    def coerce(cls, options: Union["CodecOptions", Dict[str, Any], None]) -> "CodecOptions":
        if options is None:
            return cls()
        if isinstance(options, cls):
            return options
        return cls.model_validate(options)
