"""
Validation of JSON instances against Schema objects of the description document

The Schema objects are dumped and validated using jsonschema - OpenAPI 3.0 documents with a
Draft 4 based validator, OpenAPI 3.1 documents with a Draft 2020-12 based validator.
Both are extended for

 * nullable
 * boolean exclusiveMinimum/exclusiveMaximum modifying minimum/maximum (OpenAPI 3.0)
 * the discriminator selecting the oneOf Schema
 * the depth limit for $ref

Local references are bound to the description document, which is the single resource of the
referencing Registry.
"""
import contextvars
import dataclasses
import json
import typing
from typing import Any, List, Optional

import jsonschema
import jsonschema.validators
import referencing
import referencing.exceptions

from .errors import ErrorKind, SchemaRefError, SchemaTooDeepError, ValidationError
from .json import JSONPointer, JSONReference
from .v3 import Schema

if typing.TYPE_CHECKING:
    from .openapi import SpecDocument

DEFAULT_MAX_DEPTH = 128

DOCUMENT_URI = "urn:aiocommittee:document"


def typeof(value: Any) -> str:
    """
    the JSON type name of a value
    """
    if value is None:
        return "null"
    elif isinstance(value, bool):
        return "boolean"
    elif isinstance(value, int):
        return "integer"
    elif isinstance(value, float):
        return "number"
    elif isinstance(value, str):
        return "string"
    elif isinstance(value, dict):
        return "object"
    elif isinstance(value, (list, tuple)):
        return "array"
    return type(value).__name__


def describe(value: Any) -> str:
    try:
        r = json.dumps(value)
    except (TypeError, ValueError):
        r = repr(value)
    if len(r) > 64:
        r = f"{r[:61]}..."
    return r


def absolute(node: Any) -> Any:
    """
    copy of the dumped Schema, the local references are bound to the description document

    >>> absolute({"$ref": "#/components/schemas/city"})
    {'$ref': 'urn:aiocommittee:document#/components/schemas/city'}
    """
    if isinstance(node, dict):
        return {
            k: f"{DOCUMENT_URI}{v}" if k == "$ref" and isinstance(v, str) and v.startswith("#") else absolute(v)
            for k, v in node.items()
        }
    elif isinstance(node, list):
        return [absolute(i) for i in node]
    return node


def local(ref: str) -> str:
    """
    the pointer of a reference within the description document
    """
    _, f = JSONReference.split(ref)
    return f"#{f}"


@dataclasses.dataclass
class _Depth:
    maximum: int
    current: int = 0


_depth: contextvars.ContextVar[_Depth] = contextvars.ContextVar("aiocommittee.validator.depth")

_KEYWORDS = jsonschema.Draft202012Validator.VALIDATORS
_DRAFT4_KEYWORDS = jsonschema.Draft4Validator.VALIDATORS


def reference(validator, ref, instance, schema):
    depth = _depth.get()
    depth.current += 1
    try:
        if depth.current > depth.maximum:
            raise SchemaTooDeepError(local(ref), depth.maximum)
        yield from _KEYWORDS["$ref"](validator, ref, instance, schema)
    finally:
        depth.current -= 1


def nullable(validator, types, instance, schema):
    if instance is None and schema.get("nullable") is True:
        return
    yield from _KEYWORDS["type"](validator, types, instance, schema)


def required(validator, required, instance, schema):
    if not validator.is_type(instance, "object"):
        return
    for name in required:
        if name not in instance:
            yield jsonschema.ValidationError(f"missing required parameters: {name}")


def additional_properties(validator, additional, instance, schema):
    if additional is not False:
        yield from _KEYWORDS["additionalProperties"](validator, additional, instance, schema)
        return
    if not validator.is_type(instance, "object"):
        return
    for name in instance:
        if name not in schema.get("properties", {}):
            yield jsonschema.ValidationError(f"does not define properties: {name}", path=[name])


def minimum(validator, minimum, instance, schema):
    if isinstance(schema.get("exclusiveMinimum"), bool):
        yield from _DRAFT4_KEYWORDS["minimum"](validator, minimum, instance, schema)
    else:
        yield from _KEYWORDS["minimum"](validator, minimum, instance, schema)


def maximum(validator, maximum, instance, schema):
    if isinstance(schema.get("exclusiveMaximum"), bool):
        yield from _DRAFT4_KEYWORDS["maximum"](validator, maximum, instance, schema)
    else:
        yield from _KEYWORDS["maximum"](validator, maximum, instance, schema)


def exclusive_minimum(validator, minimum, instance, schema):
    # OpenAPI 3.0 - the flag is evaluated with minimum
    if not isinstance(minimum, bool):
        yield from _KEYWORDS["exclusiveMinimum"](validator, minimum, instance, schema)


def exclusive_maximum(validator, maximum, instance, schema):
    if not isinstance(maximum, bool):
        yield from _KEYWORDS["exclusiveMaximum"](validator, maximum, instance, schema)


def discriminate(schema, one_of, instance) -> Optional[int]:
    """
    the index of the oneOf Schema selected by the discriminator
    """
    if (discriminator := schema.get("discriminator")) is None or not isinstance(instance, dict):
        return None
    if not isinstance(value := instance.get(discriminator["propertyName"]), str):
        return None
    ref = (discriminator.get("mapping") or {}).get(value, f"#/components/schemas/{value}")
    for index, subschema in enumerate(one_of):
        if isinstance(subschema, dict) and local(subschema.get("$ref", "")) == ref:
            return index
    return None


def one_of(validator, one_of, instance, schema):
    if (index := discriminate(schema, one_of, instance)) is not None:
        yield from validator.descend(instance, one_of[index], schema_path=index)
        return
    yield from _KEYWORDS["oneOf"](validator, one_of, instance, schema)


OPENAPI_KEYWORDS = {
    "$ref": reference,
    "type": nullable,
    "required": required,
    "additionalProperties": additional_properties,
    "minimum": minimum,
    "maximum": maximum,
    "exclusiveMinimum": exclusive_minimum,
    "exclusiveMaximum": exclusive_maximum,
    "oneOf": one_of,
}

# Draft 4 does not accept 1.0 as integer
OpenAPI30Validator = jsonschema.validators.extend(
    jsonschema.Draft4Validator,
    OPENAPI_KEYWORDS,
    type_checker=jsonschema.Draft4Validator.TYPE_CHECKER.redefine(
        "integer", lambda checker, instance: jsonschema.Draft202012Validator.TYPE_CHECKER.is_type(instance, "integer")
    ),
)

OpenAPI31Validator = jsonschema.validators.extend(jsonschema.Draft202012Validator, OPENAPI_KEYWORDS)

KINDS = {
    "type": ErrorKind.TYPE_MISMATCH,
    "required": ErrorKind.MISSING_REQUIRED,
    "additionalProperties": ErrorKind.ADDITIONAL_PROPERTY,
}


def message(error: jsonschema.ValidationError) -> str:
    """
    the message of the jsonschema error, in the words of the ValidationError
    """
    keyword, value, instance = error.validator, error.validator_value, error.instance
    if keyword == "type":
        types = [value] if isinstance(value, str) else value
        expected = " or ".join(t for t in types if t != "null") or "null"
        return f"expected {expected}, but received {typeof(instance)}: {describe(instance)}"
    elif keyword == "enum":
        return f"{describe(instance)} isn't part of the enum {describe(value)}"
    elif keyword == "minimum":
        if error.schema.get("exclusiveMinimum") is True:
            return f"{instance} is less than or equal to exclusiveMinimum {value}"
        return f"{instance} is less than minimum {value}"
    elif keyword == "maximum":
        if error.schema.get("exclusiveMaximum") is True:
            return f"{instance} is more than or equal to exclusiveMaximum {value}"
        return f"{instance} is more than maximum {value}"
    elif keyword == "exclusiveMinimum":
        return f"{instance} is less than or equal to exclusiveMinimum {value}"
    elif keyword == "exclusiveMaximum":
        return f"{instance} is more than or equal to exclusiveMaximum {value}"
    elif keyword == "multipleOf":
        return f"{instance} is not a multiple of {value}"
    elif keyword == "minLength":
        return f"{describe(instance)} is shorter than minLength {value}"
    elif keyword == "maxLength":
        return f"{describe(instance)} is longer than maxLength {value}"
    elif keyword == "pattern":
        return f"{describe(instance)} does not match pattern {value}"
    elif keyword == "minItems":
        return f"has {len(instance)} items, less than minItems {value}"
    elif keyword == "maxItems":
        return f"has {len(instance)} items, more than maxItems {value}"
    elif keyword == "uniqueItems":
        return f"{describe(instance)} has non-unique items"
    elif keyword == "minProperties":
        return f"has {len(instance)} properties, less than minProperties {value}"
    elif keyword == "maxProperties":
        return f"has {len(instance)} properties, more than maxProperties {value}"
    elif keyword == "anyOf":
        return "does not match any of the anyOf schemas"
    elif keyword == "oneOf":
        if error.context or not value:
            return "does not match any of the oneOf schemas"
        return "matches more than one of the oneOf schemas"
    elif keyword == "not":
        return "matches the schema it must not match"
    return error.message


class SchemaValidator:
    """
    Validates instances against the Schema objects of a SpecDocument

    The validator does not hold state between calls, a single instance can be shared.
    """

    def __init__(self, document: "SpecDocument", max_depth: int = DEFAULT_MAX_DEPTH):
        self.document = document
        self.max_depth = max_depth
        self.cls = OpenAPI31Validator if document.openapi.startswith("3.1") else OpenAPI30Validator
        resource = referencing.Resource.opaque(absolute(document.dump()))
        self.registry: referencing.Registry = referencing.Registry().with_resource(DOCUMENT_URI, resource)
        self.resolver = self.registry.resolver()

    def validate(self, schema: Schema, instance: Any, path: str = "#") -> List[ValidationError]:
        """
        validate the instance

        :param schema: the Schema
        :param instance: the decoded JSON data
        :param path: the location of the instance, used as prefix for the errors
        :return: all errors found, empty if the instance is valid
        :raises SchemaTooDeepError: the nesting exceeds max_depth
        """
        contents = absolute(schema.model_dump(by_alias=True, exclude_unset=True))
        validator = self.cls(contents, registry=self.registry)
        token = _depth.set(_Depth(self.max_depth))
        try:
            errors = list(validator.iter_errors(instance))
        except RecursionError as e:
            raise SchemaTooDeepError(schema.pointer, self.max_depth) from e
        except referencing.exceptions.Unresolvable as e:
            raise SchemaRefError(f"{schema.pointer} {e}", schema.pointer) from e
        finally:
            _depth.reset(token)
        return [self._error(schema.pointer, contents, path, e) for e in errors]

    def is_valid(self, schema: Schema, instance: Any) -> bool:
        return not self.validate(schema, instance)

    def _error(self, pointer: str, node: Any, path: str, error: jsonschema.ValidationError) -> ValidationError:
        """
        the pointer of the failing Schema is found by following the schema path of the error,
        the path does not list the references followed
        """
        keys = list(error.relative_schema_path)
        keyword = keys.pop()
        for key in keys:
            pointer, node = self._follow(pointer, node, key)
            pointer, node = JSONPointer.join(pointer, key), node[key]
        pointer, node = self._follow(pointer, node, keyword)
        return ValidationError(
            KINDS.get(error.validator, ErrorKind.INVALID_VALUE),
            pointer,
            message(error),
            JSONPointer.join(path, *error.absolute_path),
        )

    def _follow(self, pointer: str, node: Any, key) -> tuple:
        while isinstance(node, dict) and "$ref" in node and key not in node:
            pointer, node = local(node["$ref"]), self.resolver.lookup(node["$ref"]).contents
        return pointer, node
