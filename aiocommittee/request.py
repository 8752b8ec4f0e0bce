"""
Validation of requests and responses of a matched Operation

The functions in here do not know about ASGI, the middleware and the cli provide the
query (a yarl MultiDict), the headers (httpx.Headers) and the raw body.
"""
import http.cookies
import json
import logging
import math
import typing
from typing import Any, Dict, List, Optional, Tuple

import httpx

from .errors import ErrorKind, SchemaTooDeepError, ValidationError
from .json import JSONPointer
from .matcher import Match
from .v3 import Schema
from .v3.media import MediaType, is_json, select_json

if typing.TYPE_CHECKING:
    from .openapi import SpecDocument
    from .validator import SchemaValidator
    from ._types import ParameterType

log = logging.getLogger("aiocommittee.request")

# https://github.com/OAI/OpenAPI-Specification/blob/main/versions/3.0.3.md#fixed-fields-10
IGNORED_HEADERS = frozenset(["accept", "content-type", "authorization"])


def coerce(document: "SpecDocument", schema: Optional[Schema], value: str) -> Any:
    """
    convert the string value of a parameter to the primitive type declared by the Schema

    values which can not be converted are returned unchanged, the validator reports the mismatch

    e.g. "5" is 5 for an integer Schema, "true" is True for a boolean Schema
    """
    if schema is None:
        return value
    schema = document.resolve(schema)
    for type_ in schema.types:
        if type_ == "string":
            return value
        elif type_ == "integer":
            try:
                return int(value)
            except ValueError:
                continue
        elif type_ == "number":
            try:
                return int(value)
            except ValueError:
                pass
            try:
                v = float(value)
            except ValueError:
                continue
            if math.isfinite(v):
                return v
        elif type_ == "boolean":
            if value in ("true", "false"):
                return value == "true"
        elif type_ == "null":
            if value in ("", "null"):
                return None
    return value


def media_type(content: Dict[str, MediaType], content_type: Optional[str]) -> Optional[MediaType]:
    """
    the MediaType for the Content-Type - the exact type or the most specific json type
    """
    if content_type is not None:
        mt = content_type.split(";", 1)[0].strip().lower()
        if (r := content.get(mt)) is not None:
            return r
    return select_json(content)


def is_declared(content: Dict[str, MediaType], content_type: str) -> bool:
    mt = content_type.split(";", 1)[0].strip().lower()
    type_, _, _ = mt.partition("/")
    return any(i in content for i in (mt, f"{type_}/*", "*/*"))


def _decode_json(data: bytes, kind: str, pointer: str) -> Tuple[Any, List[ValidationError]]:
    try:
        return json.loads(data), []
    except ValueError as e:
        return None, [ValidationError(ErrorKind.INVALID_BODY, pointer, f"{kind} is not valid JSON: {e}")]


def _validate(validator: "SchemaValidator", schema: Schema, value: Any, path: str = "#") -> List[ValidationError]:
    """
    validate the value, nesting beyond the depth limit is an error of the value
    """
    try:
        return validator.validate(schema, value, path)
    except SchemaTooDeepError as e:
        log.debug(str(e))
        return [ValidationError(ErrorKind.TOO_DEEP, e.pointer, f"exceeds the maximum depth {e.depth}", path)]


def _parameter_values(
    parameter: "ParameterType", match: Match, query, headers: httpx.Headers, cookies: http.cookies.SimpleCookie
) -> List[str]:
    name = parameter.name
    if parameter.in_ == "path":
        return [v] if (v := match.parameters.get(name)) is not None else []
    elif parameter.in_ == "query":
        return list(query.getall(name, []))
    elif parameter.in_ == "header":
        return headers.get_list(name)
    elif parameter.in_ == "cookie":
        return [cookies[name].value] if name in cookies else []
    raise ValueError(parameter.in_)


def _decode_parameter(
    document: "SpecDocument", parameter: "ParameterType", values: List[str], coerce_: bool
) -> Tuple[Any, List[ValidationError]]:
    if parameter.schema_ is None:
        # content based parameter, the value is the serialized data
        try:
            return json.loads(values[0]), []
        except ValueError as e:
            return None, [
                ValidationError(
                    ErrorKind.INVALID_VALUE,
                    parameter.pointer,
                    f"{parameter.name} is not valid JSON: {e}",
                    JSONPointer.join("#", parameter.in_, parameter.name),
                )
            ]

    schema = document.resolve(parameter.schema_)
    if "array" in schema.types:
        if len(values) == 1 and (parameter.in_ != "query" or parameter.explode is False):
            values = values[0].split(",")
        return [coerce(document, schema.items, v) if coerce_ else v for v in values], []
    return (coerce(document, schema, values[0]) if coerce_ else values[0]), []


def validate_parameters(
    document: "SpecDocument",
    validator: "SchemaValidator",
    match: Match,
    query,
    headers: httpx.Headers,
    coerce_path_params: bool = True,
    coerce_query_params: bool = True,
) -> List[ValidationError]:
    """
    validate the path, query, header and cookie parameters of the request
    """
    assert match.pathitem is not None and match.operation is not None
    cookies: http.cookies.SimpleCookie = http.cookies.SimpleCookie()
    try:
        for value in headers.get_list("cookie"):
            cookies.load(value)
    except http.cookies.CookieError as e:
        log.debug(f"invalid cookie header {e}")

    errors: List[ValidationError] = []
    for parameter in document.parameters(match.pathitem, match.operation):
        if parameter.in_ == "header" and parameter.name.lower() in IGNORED_HEADERS:
            continue
        location = JSONPointer.join("#", parameter.in_, parameter.name)
        values = _parameter_values(parameter, match, query, headers, cookies)
        if not values:
            if parameter.required:
                errors.append(
                    ValidationError(
                        ErrorKind.MISSING_REQUIRED,
                        parameter.pointer,
                        f"missing required parameters: {parameter.name}",
                        location,
                    )
                )
            continue

        if parameter.in_ == "path":
            coerce_ = coerce_path_params
        elif parameter.in_ == "query":
            coerce_ = coerce_query_params
        else:
            coerce_ = True

        value, e = _decode_parameter(document, parameter, values, coerce_)
        if e:
            errors.extend(e)
            continue
        if (schema := parameter.effective_schema) is not None:
            errors.extend(_validate(validator, schema, value, location))
    return errors


def validate_body(
    document: "SpecDocument",
    validator: "SchemaValidator",
    match: Match,
    headers: httpx.Headers,
    body: bytes,
    check_content_type: bool = True,
) -> List[ValidationError]:
    """
    validate the request body - json bodies only, other media types are accepted as is
    """
    assert match.operation is not None
    if (request_body := document.request_body(match.operation)) is None:
        return []

    if not body:
        if request_body.required:
            return [ValidationError(ErrorKind.MISSING_REQUIRED, request_body.pointer, "missing required request body")]
        return []

    def mismatch() -> List[ValidationError]:
        if not check_content_type:
            return []
        options = ", ".join(request_body.content.keys())
        return [
            ValidationError(
                ErrorKind.CONTENT_TYPE,
                request_body.pointer,
                f"expected Content-Type {options}, but received {content_type}",
            )
        ]

    content_type = headers.get("content-type")
    if content_type is None and check_content_type:
        return mismatch()
    if content_type is not None and not is_json(content_type):
        return [] if is_declared(request_body.content, content_type) else mismatch()
    if (media := media_type(request_body.content, content_type)) is None:
        return mismatch()

    data, errors = _decode_json(body, "request body", request_body.pointer)
    if errors or media.schema_ is None:
        return errors
    return _validate(validator, media.schema_, data)


def validate_request(
    document: "SpecDocument",
    validator: "SchemaValidator",
    match: Match,
    query,
    headers: httpx.Headers,
    body: bytes,
    check_content_type: bool = True,
    coerce_path_params: bool = True,
    coerce_query_params: bool = True,
) -> List[ValidationError]:
    """
    validate a request for the matched Operation

    :param document: the description document
    :param validator: the SchemaValidator
    :param match: the Match of the request, the operation is required
    :param query: the decoded query, a MultiDict
    :param headers: the request headers
    :param body: the raw request body
    :return: all errors, parameters first
    """
    errors = validate_parameters(document, validator, match, query, headers, coerce_path_params, coerce_query_params)
    errors.extend(validate_body(document, validator, match, headers, body, check_content_type))
    return errors


def validate_response(
    document: "SpecDocument",
    validator: "SchemaValidator",
    match: Match,
    method: str,
    status_code: int,
    headers: httpx.Headers,
    body: bytes,
) -> List[ValidationError]:
    """
    validate a response of the matched Operation

    the Response is looked up by the status code - exact, range (2XX) or default.
    Headers marked as required have to be present, json bodies are validated against the Schema.
    """
    assert match.operation is not None and match.path is not None
    if (response := document.response(match.operation, status_code)) is None:
        options = ", ".join(match.operation.responses.keys())
        return [
            ValidationError(
                ErrorKind.UNKNOWN_STATUS,
                JSONPointer.join("#/paths", match.path, method.lower(), "responses"),
                f"status code {status_code} is not defined (expected one of {options}), no default is defined",
            )
        ]

    errors: List[ValidationError] = []
    for name, header in response.headers.items():
        if name.lower() == "content-type":
            continue
        header = document.resolve(header)
        location = JSONPointer.join("#", "header", name)
        if (values := headers.get_list(name)) == []:
            if header.required:
                errors.append(
                    ValidationError(
                        ErrorKind.MISSING_REQUIRED, header.pointer, f"missing required headers: {name}", location
                    )
                )
            continue
        if header.schema_ is not None:
            errors.extend(_validate(validator, header.schema_, coerce(document, header.schema_, values[0]), location))

    content_type = headers.get("content-type")
    if not body or content_type is None or not is_json(content_type):
        return errors

    if (media := media_type(response.content, content_type)) is None or media.schema_ is None:
        return errors

    data, e = _decode_json(body, "response body", response.pointer)
    if e:
        return errors + e
    errors.extend(_validate(validator, media.schema_, data))
    return errors
