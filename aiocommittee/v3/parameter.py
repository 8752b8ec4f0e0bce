from typing import Optional, Dict, Any, Literal

from pydantic import Field, model_validator

from ..base import ObjectExtended, LocatedBase

from .media import MediaType, select_json
from .schemas import Schema


class ParameterBase(ObjectExtended, LocatedBase):
    """
    A `Parameter Object`_ defines a single operation parameter.

    .. _Parameter Object: https://github.com/OAI/OpenAPI-Specification/blob/main/versions/3.0.3.md#external-documentation-object
    """

    description: Optional[str] = Field(default=None)
    required: Optional[bool] = Field(default=None)
    deprecated: Optional[bool] = Field(default=None)
    allowEmptyValue: Optional[bool] = Field(default=None)

    style: Optional[str] = Field(default=None)
    explode: Optional[bool] = Field(default=None)
    allowReserved: Optional[bool] = Field(default=None)
    schema_: Optional[Schema] = Field(default=None, alias="schema")
    example: Optional[Any] = Field(default=None)
    examples: Dict[str, Any] = Field(default_factory=dict)

    content: Dict[str, MediaType] = Field(default_factory=dict)

    _pointer: str = "#"

    @model_validator(mode="after")
    def validate_ParameterBase_schema(self):
        assert (self.schema_ is None) != (len(self.content) == 0), "either schema or content are required"
        return self

    @property
    def effective_schema(self) -> Optional[Schema]:
        if self.schema_ is not None:
            return self.schema_
        mt = select_json(self.content)
        return mt.schema_ if mt else None


class Parameter(ParameterBase):
    name: str = Field(...)
    in_: Literal["query", "header", "path", "cookie"] = Field(alias="in")

    @model_validator(mode="after")
    def validate_Parameter_path(self):
        """
        If the parameter location is "path", this property is REQUIRED and its value MUST be true.
        """
        if self.in_ == "path":
            assert self.required is True, f"path parameter {self.name} is not required"
        return self


class Header(ParameterBase):
    """

    .. _HeaderObject: https://github.com/OAI/OpenAPI-Specification/blob/main/versions/3.0.3.md#header-object
    """

    pass
