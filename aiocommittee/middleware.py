import dataclasses
import enum
import logging
import pathlib
from typing import Any, Callable, List, Optional, Union

import httpx
import yarl
from pydantic import BaseModel, Field, model_validator

from .errors import ErrorKind, RequestInvalid, ResponseInvalid, ValidationError, ValidationFailure
from .matcher import Match
from .openapi import SpecDocument, load
from .plugin import Plugin
from .render import ErrorRenderer, JSONErrorRenderer
from .request import validate_request, validate_response
from .validator import DEFAULT_MAX_DEPTH, SchemaValidator
from ._types import ASGIApp, Message, Receive, Scope, Send

log = logging.getLogger("aiocommittee.middleware")


class Options(BaseModel):
    """
    The configuration of the ValidationMiddleware, consumed once at startup
    """

    model_config = dict(arbitrary_types_allowed=True, populate_by_name=True, extra="forbid")

    schema_path: Optional[Union[str, pathlib.Path]] = Field(default=None)
    """the url or file of the description document"""
    document: Optional[SpecDocument] = Field(default=None)
    """the loaded description document, alternative to schema_path"""
    plugins: Optional[List[Plugin]] = Field(default=None)

    raise_: Union[bool, Callable[[ResponseInvalid], bool]] = Field(default=False, alias="raise")
    """raise ResponseInvalid for invalid responses, a predicate decides per response"""
    ignore_error: bool = Field(default=False)
    """pass invalid responses instead of replacing them with an error response"""
    error_handler: Optional[Callable[[ValidationError], None]] = Field(default=None)
    """called for each ValidationError - for telemetry"""
    error_renderer: ErrorRenderer = Field(default_factory=JSONErrorRenderer)

    prefix: Optional[str] = Field(default=None)
    """only requests below the prefix are validated, the prefix is stripped before matching"""
    strict: bool = Field(default=False)
    """reject requests for undocumented paths & methods"""
    validate_request: bool = Field(default=True)
    validate_response: bool = Field(default=True)
    validate_success_only: bool = Field(default=True)
    check_content_type: bool = Field(default=True)
    coerce_path_params: bool = Field(default=True)
    coerce_query_params: bool = Field(default=True)
    max_depth: int = Field(default=DEFAULT_MAX_DEPTH, gt=0)

    @model_validator(mode="after")
    def validate_Options_source(self):
        assert (self.schema_path is None) != (self.document is None), "either schema_path or document are required"
        return self

    def should_raise(self, exc: ResponseInvalid) -> bool:
        if callable(self.raise_):
            return bool(self.raise_(exc))
        return self.raise_


class Phase(enum.Enum):
    RECEIVED = "Received"
    REQUEST_VALIDATED = "RequestValidated"
    FORWARDED = "Forwarded"
    RESPONSE_RECEIVED = "ResponseReceived"
    RESPONSE_VALIDATED = "ResponseValidated"
    COMPLETED = "Completed"


@dataclasses.dataclass
class Exchange:
    """
    a single request/response passing the middleware
    """

    method: str
    path: str
    match: Match
    phase: Phase = Phase.RECEIVED
    body: bytes = b""
    status_code: Optional[int] = None
    messages: List[Message] = dataclasses.field(default_factory=list)
    """the buffered response"""

    def advance(self, phase: Phase) -> None:
        log.debug(f"{self.method} {self.path} {self.phase.value} -> {phase.value}")
        self.phase = phase

    @property
    def response_headers(self) -> httpx.Headers:
        for message in self.messages:
            if message["type"] == "http.response.start":
                return httpx.Headers(list(message.get("headers", [])))
        return httpx.Headers()

    @property
    def response_body(self) -> bytes:
        return b"".join(m.get("body", b"") for m in self.messages if m["type"] == "http.response.body")


class ValidationMiddleware:
    """
    ASGI middleware validating requests and responses against the description document

    Invalid requests are answered with 400 and do not reach the application.
    Invalid responses are raised, replaced with a 500 or passed depending on the options.

    .. code:: python

        app = FastAPI()
        app.add_middleware(ValidationMiddleware, schema_path="openapi.yaml", raise_=True)
    """

    def __init__(self, app: ASGIApp, options: Optional[Options] = None, **kwargs: Any):
        """
        :param app: the downstream ASGI application
        :param options: the Options, alternatively pass the options as keyword arguments
        :raises SpecError: the description document is invalid
        """
        self.app = app
        self.options = options if options is not None else Options.model_validate(kwargs)
        if (document := self.options.document) is None:
            assert self.options.schema_path is not None
            document = load(self.options.schema_path, self.options.plugins)
        self.document: SpecDocument = document
        self.validator = SchemaValidator(self.document, self.options.max_depth)
        self.prefix: Optional[str] = self.options.prefix.rstrip("/") if self.options.prefix else None

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        method: str = scope["method"].upper()
        if (raw := scope.get("raw_path")) is not None:
            # the raw_path of some servers includes the query
            path, encoded = raw.split(b"?", 1)[0].decode("latin-1"), True
        else:
            path, encoded = scope["path"], False

        if self.prefix is not None:
            if path != self.prefix and not path.startswith(f"{self.prefix}/"):
                await self.app(scope, receive, send)
                return
            path = path[len(self.prefix) :] or "/"

        match = self.document.match(method, path, encoded)
        if match.operation is None:
            if self.options.strict:
                await self._not_documented(method, path, match, send)
            else:
                log.debug(f"{method} {path} is not documented")
                await self.app(scope, receive, send)
            return

        exchange = Exchange(method, path, match)
        if self.options.validate_request:
            exchange.body = await self._receive_body(receive)
            query = yarl.URL.build(query_string=scope.get("query_string", b"").decode("latin-1"), encoded=True).query
            errors = validate_request(
                self.document,
                self.validator,
                match,
                query,
                httpx.Headers(list(scope.get("headers", []))),
                exchange.body,
                self.options.check_content_type,
                self.options.coerce_path_params,
                self.options.coerce_query_params,
            )
            if errors:
                exc = RequestInvalid(errors, method, path, match.operation)
                self._handle(exc)
                log.info(str(exc))
                await self._render(send, 400, "bad_request", exc.message)
                exchange.advance(Phase.COMPLETED)
                return
            receive = self._replay(exchange.body, receive)
        exchange.advance(Phase.REQUEST_VALIDATED)

        if not self.options.validate_response:
            exchange.advance(Phase.FORWARDED)
            await self.app(scope, receive, send)
            exchange.advance(Phase.COMPLETED)
            return

        async def buffer(message: Message) -> None:
            if message["type"] == "http.response.start":
                exchange.status_code = message["status"]
            exchange.messages.append(message)

        exchange.advance(Phase.FORWARDED)
        await self.app(scope, receive, buffer)
        exchange.advance(Phase.RESPONSE_RECEIVED)

        if exchange.status_code is not None and self._validates(exchange.status_code):
            errors = validate_response(
                self.document,
                self.validator,
                match,
                method,
                exchange.status_code,
                exchange.response_headers,
                exchange.response_body,
            )
            if errors:
                exc = ResponseInvalid(errors, method, path, match.operation, exchange.status_code)
                self._handle(exc)
                if self.options.should_raise(exc):
                    exchange.advance(Phase.COMPLETED)
                    raise exc
                log.warning(str(exc))
                if not self.options.ignore_error:
                    await self._render(send, 500, "invalid_response", exc.message)
                    exchange.advance(Phase.COMPLETED)
                    return
        exchange.advance(Phase.RESPONSE_VALIDATED)

        for message in exchange.messages:
            await send(message)
        exchange.advance(Phase.COMPLETED)

    def _validates(self, status_code: int) -> bool:
        return not self.options.validate_success_only or 200 <= status_code < 300

    def _handle(self, exc: ValidationFailure) -> None:
        if self.options.error_handler is None:
            return
        for error in exc.errors:
            self.options.error_handler(error)

    async def _not_documented(self, method: str, path: str, match: Match, send: Send) -> None:
        if match.matched:
            error = ValidationError(ErrorKind.UNKNOWN_METHOD, "#/paths", f"{method} is not documented for {match.path}")
        else:
            error = ValidationError(ErrorKind.UNKNOWN_PATH, "#/paths", f"{path} is not documented")
        self._handle(RequestInvalid([error], method, path, None))
        await self._render(send, 404, "not_found", str(error))

    async def _render(self, send: Send, status: int, id: str, message: str) -> None:
        status, headers, body = self.options.error_renderer.render(status, id, message)
        await send(
            {
                "type": "http.response.start",
                "status": status,
                "headers": [(k.lower().encode("latin-1"), v.encode("latin-1")) for k, v in headers.items()],
            }
        )
        await send({"type": "http.response.body", "body": body, "more_body": False})

    @staticmethod
    async def _receive_body(receive: Receive) -> bytes:
        chunks: List[bytes] = []
        while True:
            message = await receive()
            if message["type"] == "http.disconnect":
                break
            chunks.append(message.get("body", b""))
            if not message.get("more_body", False):
                break
        return b"".join(chunks)

    @staticmethod
    def _replay(body: bytes, receive: Receive) -> Receive:
        """
        provide the consumed body to the application, afterwards receive from the server
        """
        replayed = False

        async def replay() -> Message:
            nonlocal replayed
            if not replayed:
                replayed = True
                return {"type": "http.request", "body": body, "more_body": False}
            return await receive()

        return replay


__all__: List[str] = ["Options", "Phase", "Exchange", "ValidationMiddleware"]
