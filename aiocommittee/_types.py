from typing import Any, Awaitable, Callable, Dict, List, MutableMapping, Optional, Tuple, TypeAlias, Union

from . import v3

JSON: TypeAlias = Optional[Union[dict[str, "JSON"], list["JSON"], str, int, float, bool]]
"""
Define a JSON type
https://github.com/python/typing/issues/182#issuecomment-1320974824
"""

RootType = v3.Root
SchemaType = v3.Schema
PathItemType = v3.PathItem
OperationType = v3.Operation
ParameterType = v3.Parameter
ResponseType = v3.Response
MediaTypeType = v3.MediaType

Scope = MutableMapping[str, Any]
Message = MutableMapping[str, Any]
Receive = Callable[[], Awaitable[Message]]
Send = Callable[[Message], Awaitable[None]]
ASGIApp = Callable[[Scope, Receive, Send], Awaitable[None]]

RenderedError = Tuple[int, Dict[str, str], bytes]

__all__: List[str] = [
    "JSON",
    "RootType",
    "SchemaType",
    "PathItemType",
    "OperationType",
    "ParameterType",
    "ResponseType",
    "MediaTypeType",
    "Scope",
    "Message",
    "Receive",
    "Send",
    "ASGIApp",
    "RenderedError",
]
