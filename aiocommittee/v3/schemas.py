import re
from typing import Union, List, Any, Optional, Dict

from pydantic import Field, field_validator

from ..base import ObjectExtended, SchemaBase


class Discriminator(ObjectExtended):
    """

    .. here: https://github.com/OAI/OpenAPI-Specification/blob/main/versions/3.0.3.md#discriminator-object
    """

    propertyName: str = Field(...)
    mapping: Optional[Dict[str, str]] = Field(default_factory=dict)


class Schema(ObjectExtended, SchemaBase):
    """
    The `Schema Object`_ allows the definition of input and output data types.

    A Schema with ``$ref`` set is a reference to another Schema, other keywords next to it are ignored
    as in OpenAPI 3.0.

    .. _Schema Object: https://github.com/OAI/OpenAPI-Specification/blob/main/versions/3.0.3.md#schema-object
    """

    model_config = dict(extra="allow")

    ref: Optional[str] = Field(default=None, alias="$ref")

    title: Optional[str] = Field(default=None)
    multipleOf: Optional[float] = Field(default=None)
    maximum: Optional[float] = Field(default=None)
    exclusiveMaximum: Optional[Union[float, bool]] = Field(default=None)
    minimum: Optional[float] = Field(default=None)
    exclusiveMinimum: Optional[Union[float, bool]] = Field(default=None)
    maxLength: Optional[int] = Field(default=None)
    minLength: Optional[int] = Field(default=None)
    pattern: Optional[str] = Field(default=None)
    maxItems: Optional[int] = Field(default=None)
    minItems: Optional[int] = Field(default=None)
    uniqueItems: Optional[bool] = Field(default=None)
    maxProperties: Optional[int] = Field(default=None)
    minProperties: Optional[int] = Field(default=None)
    required: List[str] = Field(default_factory=list)
    enum: Optional[List[Any]] = Field(default=None)

    type: Optional[Union[str, List[str]]] = Field(default=None)
    allOf: List["Schema"] = Field(default_factory=list)
    oneOf: List["Schema"] = Field(default_factory=list)
    anyOf: List["Schema"] = Field(default_factory=list)
    not_: Optional["Schema"] = Field(default=None, alias="not")
    items: Optional["Schema"] = Field(default=None)
    properties: Dict[str, "Schema"] = Field(default_factory=dict)
    additionalProperties: Optional[Union[bool, "Schema"]] = Field(default=None)
    description: Optional[str] = Field(default=None)
    format: Optional[str] = Field(default=None)
    default: Optional[Any] = Field(default=None)
    nullable: Optional[bool] = Field(default=None)
    discriminator: Optional[Discriminator] = Field(default=None)
    readOnly: Optional[bool] = Field(default=None)
    writeOnly: Optional[bool] = Field(default=None)
    xml: Optional[Any] = Field(default=None)
    externalDocs: Optional[dict] = Field(default=None)
    example: Optional[Any] = Field(default=None)
    deprecated: Optional[bool] = Field(default=None)

    _pointer: str = "#"

    @field_validator("pattern")
    @classmethod
    def validate_Schema_pattern(cls, v: Optional[str]) -> Optional[str]:
        if v is not None:
            try:
                re.compile(v)
            except re.error as e:
                raise ValueError(f"invalid pattern {v!r}: {e}") from e
        return v

    @property
    def types(self) -> List[str]:
        """
        the type keyword as list - OpenAPI 3.1 allows multiple types, 3.0 uses nullable
        """
        if self.type is None:
            r = []
        elif isinstance(self.type, str):
            r = [self.type]
        else:
            r = list(self.type)
        if self.nullable and r and "null" not in r:
            r.append("null")
        return r

    def __repr__(self):
        return f"<{self.__class__.__name__} {self._pointer}>"
