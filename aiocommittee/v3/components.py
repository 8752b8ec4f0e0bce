from typing import Union, Dict, Any

from pydantic import Field

from ..base import ObjectExtended

from .paths import RequestBody, Response, PathItem
from .general import Reference
from .parameter import Header, Parameter
from .schemas import Schema


class Components(ObjectExtended):
    """
    A `Components Object`_ holds a reusable set of different aspects of the OAS
    description document.

    .. _Components Object: https://github.com/OAI/OpenAPI-Specification/blob/main/versions/3.0.3.md#components-object
    """

    schemas: Dict[str, Schema] = Field(default_factory=dict)
    responses: Dict[str, Union[Reference, Response]] = Field(default_factory=dict)
    parameters: Dict[str, Union[Reference, Parameter]] = Field(default_factory=dict)
    examples: Dict[str, Any] = Field(default_factory=dict)
    requestBodies: Dict[str, Union[Reference, RequestBody]] = Field(default_factory=dict)
    headers: Dict[str, Union[Reference, Header]] = Field(default_factory=dict)
    securitySchemes: Dict[str, Any] = Field(default_factory=dict)
    links: Dict[str, Any] = Field(default_factory=dict)
    callbacks: Dict[str, Any] = Field(default_factory=dict)
    pathItems: Dict[str, Union[Reference, PathItem]] = Field(default_factory=dict)
