import argparse
import datetime
import importlib.util
import sys
from pathlib import Path
from typing import List

import httpx
import yarl

import aiocommittee.plugin

from .errors import RequestInvalid, ResponseInvalid, SpecError, ValidationFailure
from .log import init
from .openapi import SpecDocument
from .request import validate_request, validate_response
from .validator import DEFAULT_MAX_DEPTH, SchemaValidator

init()


def plugins_load(baseurl, plugins: List[str]) -> List[aiocommittee.plugin.Plugin]:
    """
    load Plugins from python files
    """
    r = []
    for p in plugins:
        file, _, cls = p.partition(":")
        clsp = cls.split(",")

        if (spec := importlib.util.spec_from_file_location("extra", file)) is None:
            raise ValueError("importlib")
        if (module := importlib.util.module_from_spec(spec)) is None:
            raise ValueError("importlib")
        assert spec and spec.loader and module
        spec.loader.exec_module(module)
        for c in clsp:
            plugin = getattr(module, c)
            varnames = plugin.__init__.__code__.co_varnames
            if len(varnames) == 1:
                obj = plugin()
            elif varnames == ("self", "url"):
                obj = plugin(baseurl)
            else:
                raise TypeError("Can't __init__ plugin - unknown args")
            r.append(obj)
    return r


def document_load(args: argparse.Namespace, plugins, session_factory) -> SpecDocument:
    url = yarl.URL(args.input)
    if url.scheme in ["http", "https"]:
        return SpecDocument.load_sync(url, session_factory=session_factory, plugins=plugins)
    return SpecDocument.load_file(args.input, plugins=plugins)


def data_load(value):
    if not value:
        return b""
    if value[0] == "@":
        return Path(value[1:]).read_bytes()
    return value.encode()


def main(argv=None) -> int:
    parser = argparse.ArgumentParser("aiocommittee", description="OpenAPI 3.0/3.1 request & response validator")
    parser.add_argument("-v", "--verbose", action="store_true", default=False, help="be verbose")
    parser.add_argument("-P", "--plugins", action="append")
    parser.add_argument("--max-depth", type=int, default=None)
    parser.add_argument("--disable-ssl-validation", action="store_true", default=False)
    sub = parser.add_subparsers()

    cmd = sub.add_parser("validate", help="validate the description document")
    cmd.add_argument("input")

    def cmd_validate(args: argparse.Namespace) -> int:
        begin = datetime.datetime.now()
        api = document_load(args, plugins, session_factory)
        duration = datetime.datetime.now() - begin
        if args.verbose:
            print(f"…  {duration} (processing time)")
            print(f"… {len(api.paths)} #paths")
            print(f"… {len(api.matcher.operations())} #operations")
            print(f"… {len(api.schemas)} #schemas")
            print(f"… {len(api.references)} #references")
        print("OK")
        return 0

    cmd.set_defaults(func=cmd_validate)

    cmd = sub.add_parser("check", help="validate a request or response against the description document")
    cmd.add_argument("input")
    cmd.add_argument("method")
    cmd.add_argument("path", help="the request path, may include the query")
    cmd.add_argument("-s", "--status", type=int, default=None, help="validate a response with this status code")
    cmd.add_argument("-d", "--data", default=None, help="the json body, @file to read from a file")
    cmd.add_argument("-H", "--header", action="append", default=[], help="header: value")

    def cmd_check(args: argparse.Namespace) -> int:
        api = document_load(args, plugins, session_factory)
        url = yarl.URL(args.path)
        match = api.match(args.method, url.raw_path)
        if not match.matched:
            print(f"{args.method.upper()} {url.path} is not documented", file=sys.stderr)
            return 1
        if match.operation is None:
            print(f"{args.method.upper()} is not documented for {match.path}", file=sys.stderr)
            return 1

        body = data_load(args.data)
        headers = httpx.Headers([tuple(map(str.strip, h.split(":", 1))) for h in args.header])
        if body and "content-type" not in headers:
            headers["content-type"] = "application/json"

        validator = SchemaValidator(api, args.max_depth or DEFAULT_MAX_DEPTH)
        exc: ValidationFailure
        if args.status is None:
            errors = validate_request(api, validator, match, url.query, headers, body)
            exc = RequestInvalid(errors, args.method, url.path, match.operation)
        else:
            errors = validate_response(api, validator, match, args.method, args.status, headers, body)
            exc = ResponseInvalid(errors, args.method, url.path, match.operation, args.status)

        if errors:
            print(str(exc))
            if args.verbose:
                for e in errors:
                    print(f"  {e.kind.value} {e.path}: {e}")
            return 1
        print("OK")
        return 0

    cmd.set_defaults(func=cmd_check)

    cmd = sub.add_parser("routes", help="list the documented operations")
    cmd.add_argument("input")

    def cmd_routes(args: argparse.Namespace) -> int:
        api = document_load(args, plugins, session_factory)
        for path, method, operation in api.matcher.operations():
            print(f"{method.upper():8} {path} {operation.operationId or ''}".rstrip())
        return 0

    cmd.set_defaults(func=cmd_routes)

    args = parser.parse_args(argv)

    if getattr(args, "func", None) is None:
        parser.print_help()
        return 1

    plugins = plugins_load(args.input, args.plugins or [])

    def session_factory(*args_, **kwargs) -> httpx.Client:
        return httpx.Client(*args_, verify=args.disable_ssl_validation is False, **kwargs)

    try:
        return args.func(args)
    except SpecError as e:
        where = " ".join(str(i) for i in (getattr(e, "document", None), getattr(e, "element", None)) if i)
        print(f"{e} {where}".rstrip(), file=sys.stderr)
        return 1
    except FileNotFoundError as e:
        print(e, file=sys.stderr)
        return 1


def run() -> None:
    sys.exit(main())
