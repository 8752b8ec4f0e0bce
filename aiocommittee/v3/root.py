from typing import Any, List, Optional, Dict

from pydantic import Field, field_validator

from ..base import ObjectExtended, RootBase

from .components import Components
from .info import Info
from .paths import PathItem
from .servers import Server


class Root(ObjectExtended, RootBase):
    """
    This class represents the root of the OpenAPI description document, as defined
    in `OpenAPI Object`_

    OpenAPI 3.0 and 3.1 documents share this model, the Schema keywords used for validation
    are the same.

    .. _OpenAPI Object: https://github.com/OAI/OpenAPI-Specification/blob/main/versions/3.0.3.md#openapi-object
    """

    openapi: str = Field(...)
    info: Info = Field(...)
    jsonSchemaDialect: Optional[str] = Field(default=None)
    servers: List[Server] = Field(default_factory=list)
    paths: Dict[str, PathItem] = Field(default_factory=dict)
    webhooks: Dict[str, Any] = Field(default_factory=dict)
    components: Components = Field(default_factory=Components)
    security: Optional[List[Dict[str, List[str]]]] = Field(default_factory=list)
    tags: Optional[List[Any]] = Field(default_factory=list)
    externalDocs: Optional[Dict[Any, Any]] = Field(default_factory=dict)

    @field_validator("paths", mode="before")
    @classmethod
    def validate_Root_paths(cls, v):
        if v is None:
            return {}
        if not isinstance(v, dict):
            return v
        for k in v.keys():
            if not str(k).startswith("x-") and not str(k).startswith("/"):
                raise ValueError(f"path {k} does not start with /")
        return {k: p for k, p in v.items() if not str(k).startswith("x-")}
