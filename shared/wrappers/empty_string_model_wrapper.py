import re
from typing import Any
from uuid import UUID
from pydantic import BaseModel, model_validator

INVISIBLE_CHARS_PATTERN = re.compile(
    r'[\u200e\u200f\u202a-\u202e\u2066-\u2069\ufeff]')


def deep_clean(value: Any):
    """Recursively strip strings, drop invisible chars and turn empty strings into None."""

    if isinstance(value, BaseModel):
        return type(value)(**deep_clean(value.model_dump()))

    if isinstance(value, dict):
        return {k: deep_clean(v) for k, v in value.items()}

    if isinstance(value, list):
        return [deep_clean(v) for v in value]

    if isinstance(value, str):
        cleaned = INVISIBLE_CHARS_PATTERN.sub("", value).strip()
        return None if cleaned == "" else cleaned

    if isinstance(value, UUID):
        return value

    return value


class EmptyStringModel(BaseModel):
    """Input model that treats blank form values as missing.

    Browser forms post "" for untouched selects (parent location, machine
    location, completed date); those become None before field validation so
    optional references stay NULL instead of failing UUID/date parsing.
    """

    model_config = {
        "populate_by_name": True,
        "from_attributes": True,
    }

    @model_validator(mode="before")
    @classmethod
    def clean_input(cls, values):
        if isinstance(values, dict):
            return deep_clean(values)
        return values
