from typing import Union, Optional, Any, List, Dict

from pydantic import Field, field_validator

from ..base import ObjectExtended, LocatedBase, HTTP_METHODS, STATUS_CODE
from .general import ExternalDocumentation
from .general import Reference
from .media import MediaType
from .parameter import Header, Parameter
from .servers import Server


class RequestBody(ObjectExtended, LocatedBase):
    """
    A `RequestBody`_ object describes a single request body.

    .. _RequestBody: https://github.com/OAI/OpenAPI-Specification/blob/main/versions/3.0.3.md#request-body-object
    """

    description: Optional[str] = Field(default=None)
    content: Dict[str, MediaType] = Field(...)
    required: Optional[bool] = Field(default=False)

    _pointer: str = "#"


class Response(ObjectExtended, LocatedBase):
    """
    A `Response Object`_ describes a single response from an API Operation

    .. _Response Object: https://github.com/OAI/OpenAPI-Specification/blob/main/versions/3.0.3.md#responses-object
    """

    description: str = Field(...)
    headers: Dict[str, Union[Reference, Header]] = Field(default_factory=dict)
    content: Dict[str, MediaType] = Field(default_factory=dict)
    links: Dict[str, Any] = Field(default_factory=dict)

    _pointer: str = "#"


class Operation(ObjectExtended):
    """
    An Operation object as defined `here`_

    .. _here: https://github.com/OAI/OpenAPI-Specification/blob/main/versions/3.0.3.md#operation-object
    """

    tags: Optional[List[str]] = Field(default=None)
    summary: Optional[str] = Field(default=None)
    description: Optional[str] = Field(default=None)
    externalDocs: Optional[ExternalDocumentation] = Field(default=None)
    operationId: Optional[str] = Field(default=None)
    parameters: List[Union[Reference, Parameter]] = Field(default_factory=list)
    requestBody: Optional[Union[Reference, RequestBody]] = Field(default=None)
    responses: Dict[str, Union[Reference, Response]] = Field(...)
    callbacks: Dict[str, Any] = Field(default_factory=dict)
    deprecated: Optional[bool] = Field(default=None)
    security: Optional[List[Dict[str, List[str]]]] = Field(default=None)
    servers: Optional[List[Server]] = Field(default=None)

    @field_validator("responses", mode="before")
    @classmethod
    def validate_Operation_responses(cls, v):
        """
        The Responses Object MUST contain at least one response code
        keys are HTTP status codes, 1XX…5XX ranges or default
        """
        if not isinstance(v, dict):
            return v
        v = {str(k): r for k, r in v.items() if not str(k).startswith("x-")}
        invalid = sorted(filter(lambda x: STATUS_CODE.match(x) is None, v.keys()))
        if invalid:
            raise ValueError(f"invalid status code{'s' if len(invalid) > 1 else ''} {', '.join(invalid)}")
        return v


class PathItem(ObjectExtended):
    """
    A Path Item, as defined `here`_.
    Describes the operations available on a single path.

    .. _here: https://github.com/OAI/OpenAPI-Specification/blob/main/versions/3.0.3.md#paths-object
    """

    ref: Optional[str] = Field(default=None, alias="$ref")
    summary: Optional[str] = Field(default=None)
    description: Optional[str] = Field(default=None)
    get: Optional[Operation] = Field(default=None)
    put: Optional[Operation] = Field(default=None)
    post: Optional[Operation] = Field(default=None)
    delete: Optional[Operation] = Field(default=None)
    options: Optional[Operation] = Field(default=None)
    head: Optional[Operation] = Field(default=None)
    patch: Optional[Operation] = Field(default=None)
    trace: Optional[Operation] = Field(default=None)
    servers: Optional[List[Server]] = Field(default=None)
    parameters: List[Union[Reference, Parameter]] = Field(default_factory=list)

    @property
    def operations(self) -> Dict[str, Operation]:
        return {m: op for m in sorted(HTTP_METHODS) if (op := getattr(self, m)) is not None}
