from typing import Optional, Dict, Any

from pydantic import Field

from ..base import ObjectExtended

from .schemas import Schema


class MediaType(ObjectExtended):
    """
    A `MediaType`_ object provides schema and examples for the media type identified
    by its key.  These are used in a RequestBody object.

    .. _MediaType: https://github.com/OAI/OpenAPI-Specification/blob/main/versions/3.0.3.md#media-type-object
    """

    schema_: Optional[Schema] = Field(default=None, alias="schema")
    example: Optional[Any] = Field(default=None)  # 'any' type
    examples: Dict[str, Any] = Field(default_factory=dict)
    encoding: Dict[str, Any] = Field(default_factory=dict)


def is_json(media_type: str) -> bool:
    """
    application/json, application/problem+json, application/json; charset=utf-8, */*
    """
    mt = media_type.split(";", 1)[0].strip().lower()
    if mt in ("*/*", "application/*"):
        return True
    type_, _, subtype = mt.partition("/")
    return type_ == "application" and (subtype == "json" or subtype.endswith("+json"))


def select_json(content: Dict[str, MediaType]) -> Optional[MediaType]:
    """
    the MediaType used for validation - the most specific json MediaType declared
    """
    candidates = sorted(filter(is_json, content.keys()), key=lambda x: ("*" in x, x))
    if not candidates:
        return None
    return content[candidates[0]]
