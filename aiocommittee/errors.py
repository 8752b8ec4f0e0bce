import enum
import typing
from typing import List, Optional
import dataclasses


if typing.TYPE_CHECKING:
    from ._types import OperationType


class ErrorBase(Exception):
    pass


class SpecError(ErrorBase, ValueError):
    """
    This error class is used when an invalid format is found while parsing an
    object in the description document.
    """

    def __init__(self, message, element=None):
        super().__init__(message)
        self.message = message
        self.element = element


class ParseError(SpecError):
    """
    The description document is not valid JSON/YAML or does not match the OpenAPI object model
    """

    def __init__(self, message, element=None):
        super().__init__(message, element)
        self.document = None


class SchemaRefError(SpecError):
    """
    This error class is used when resolving a reference fails, usually because
    of a malformed path in the reference or a missing target.
    """

    def __init__(self, message, element=None):
        super().__init__(message, element)
        self.document = None


class UnsupportedVersionError(SpecError):
    """
    The openapi version of the description document is not 3.x
    """

    pass


@dataclasses.dataclass
class PathAmbiguityError(SpecError):
    """
    Two path templates with the same number of parameter segments match the same paths
    """

    paths: List[str]
    message: str

    def __str__(self):
        return f"<{self.__class__.__name__} {self.paths}> {self.message}"


@dataclasses.dataclass
class SchemaTooDeepError(ErrorBase):
    """
    Validation exceeded the configured depth - usually a $ref cycle which does not consume data
    """

    pointer: str
    depth: int

    def __str__(self):
        return f"<{self.__class__.__name__} {self.pointer}> maximum depth {self.depth} exceeded"


class ErrorKind(str, enum.Enum):
    MISSING_REQUIRED = "missing-required"
    TYPE_MISMATCH = "type-mismatch"
    UNKNOWN_PATH = "unknown-path"
    UNKNOWN_METHOD = "unknown-method"
    INVALID_VALUE = "invalid-value"
    ADDITIONAL_PROPERTY = "additional-property"
    INVALID_BODY = "invalid-body"
    CONTENT_TYPE = "content-type"
    UNKNOWN_STATUS = "unknown-status"
    TOO_DEEP = "too-deep"


@dataclasses.dataclass(frozen=True)
class ValidationError:
    """
    A single finding of a validation run

    This is a record, not an exception - the validator returns lists of these.
    """

    kind: ErrorKind
    pointer: str
    """the location of the failing schema node in the description document"""
    message: str
    path: str = "#"
    """the location in the validated instance"""

    def __str__(self):
        return f"{self.pointer} {self.message}"


class ValidationFailure(ErrorBase):
    def __init__(self, errors: List[ValidationError], method: str, path: str, operation: Optional["OperationType"]):
        super().__init__(errors)
        self.errors = errors
        self.method = method
        self.path = path
        self.operation = operation

    @property
    def message(self) -> str:
        return "; ".join(map(str, self.errors))

    def __str__(self):
        return f"<{self.__class__.__name__} {self.method.upper()} '{self.path}'> {self.message}"


class RequestInvalid(ValidationFailure):
    """the request does not match the description document"""

    pass


class ResponseInvalid(ValidationFailure):
    """the response does not match the description document"""

    def __init__(
        self,
        errors: List[ValidationError],
        method: str,
        path: str,
        operation: Optional["OperationType"],
        status_code: int,
    ):
        super().__init__(errors, method, path, operation)
        self.status_code = status_code

    def __str__(self):
        return f"<{self.__class__.__name__} {self.method.upper()} '{self.path}' ({self.status_code})> {self.message}"
