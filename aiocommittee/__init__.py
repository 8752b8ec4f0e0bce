from .version import __version__
from .openapi import SpecDocument, load
from .loader import FileSystemLoader, WebLoader
from .matcher import Match, PathMatcher
from .validator import SchemaValidator
from .middleware import Options, ValidationMiddleware
from .render import ErrorRenderer, JSONErrorRenderer, ProblemRenderer
from .errors import (
    ErrorBase,
    SpecError,
    ParseError,
    SchemaRefError,
    UnsupportedVersionError,
    PathAmbiguityError,
    SchemaTooDeepError,
    ErrorKind,
    ValidationError,
    ValidationFailure,
    RequestInvalid,
    ResponseInvalid,
)

__all__ = [
    "__version__",
    "SpecDocument",
    "load",
    "FileSystemLoader",
    "WebLoader",
    "Match",
    "PathMatcher",
    "SchemaValidator",
    "Options",
    "ValidationMiddleware",
    "ErrorRenderer",
    "JSONErrorRenderer",
    "ProblemRenderer",
    "ErrorBase",
    "SpecError",
    "ParseError",
    "SchemaRefError",
    "UnsupportedVersionError",
    "PathAmbiguityError",
    "SchemaTooDeepError",
    "ErrorKind",
    "ValidationError",
    "ValidationFailure",
    "RequestInvalid",
    "ResponseInvalid",
]
