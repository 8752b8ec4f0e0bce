import typing
from typing import Any, Callable, Dict, List, Mapping, Optional, Union
import logging
import pathlib
import types

import httpx
import pydantic
import yarl

from . import log
from . import v3
from .base import LocatedBase, ReferenceBase
from .errors import ParseError, SchemaRefError, UnsupportedVersionError
from .json import JSONPointer, JSONReference
from .loader import Loader, NullLoader
from .matcher import Match, PathMatcher
from .plugin import Plugin, Plugins

if typing.TYPE_CHECKING:
    from ._types import (
        JSON,
        OperationType,
        ParameterType,
        PathItemType,
        ResponseType,
        SchemaType,
    )

# values which do not contain objects of the description document
SKIP_FIELDS = frozenset(["extensions", "example", "examples", "default", "enum", "xml", "externalDocs"])


class SpecDocument:
    """
    The description document - read only once loaded

    all ``$ref`` are resolved & validated when loading, the targets are indexed by the
    reference string (:meth:`resolve`)
    """

    _root: v3.Root

    @property
    def paths(self) -> Mapping[str, v3.PathItem]:
        return self._paths

    @property
    def components(self) -> v3.Components:
        return self._root.components

    @property
    def schemas(self) -> Mapping[str, v3.Schema]:
        return types.MappingProxyType(self._root.components.schemas)

    @property
    def references(self) -> Mapping[str, Any]:
        """
        the reference index, $ref -> target
        """
        return types.MappingProxyType(self._refs)

    @property
    def info(self) -> v3.Info:
        return self._root.info

    @property
    def openapi(self) -> str:
        return self._root.openapi

    @property
    def url(self) -> yarl.URL:
        return self._base_url

    @property
    def matcher(self) -> PathMatcher:
        return self._matcher

    @classmethod
    def load_sync(
        cls,
        url,
        session_factory: Callable[..., httpx.Client] = httpx.Client,
        plugins: Optional[List[Plugin]] = None,
    ) -> "SpecDocument":
        """
        Load the description document via http/s

        :param url: the url of the description document
        :param session_factory: used to create the session for http/s io
        :param plugins: potions to cure defects in the description document
        """
        with session_factory() as client:
            resp = client.get(str(url))
        return cls._load_response(url, resp, plugins)

    @classmethod
    async def load_async(
        cls,
        url,
        session_factory: Callable[..., httpx.AsyncClient] = httpx.AsyncClient,
        plugins: Optional[List[Plugin]] = None,
    ) -> "SpecDocument":
        """
        Load the description document via http/s using an asynchronous client

        :param url: the url of the description document
        :param session_factory: used to create the session for http/s io
        :param plugins: potions to cure defects in the description document
        """
        async with session_factory() as client:
            resp = await client.get(str(url))
        return cls._load_response(url, resp, plugins)

    @classmethod
    def _load_response(cls, url, resp: httpx.Response, plugins):
        if resp.is_redirect:
            raise ValueError(f'Redirect to {resp.headers.get("Location","")}')
        if not resp.is_success:
            raise FileNotFoundError(f"{url} {resp.status_code}")
        return cls.loads(str(url), resp.text, plugins=plugins)

    @classmethod
    def load_file(
        cls,
        path: Union[str, pathlib.Path, yarl.URL],
        loader: Optional[Loader] = None,
        plugins: Optional[List[Plugin]] = None,
    ) -> "SpecDocument":
        """
        Load the description document from a file

        :param path: description document location, relative to the loader's base
        :param loader: the backend to read the description document, defaults to the file's directory
        :param plugins: potions to cure defects in the description document
        """
        from .loader import FileSystemLoader

        if not isinstance(path, yarl.URL):
            p = pathlib.Path(path)
            if loader is None:
                loader = FileSystemLoader(p.parent.absolute())
                p = pathlib.Path(p.name)
            path = yarl.URL(p.as_posix())

        assert loader
        ps = Plugins(plugins or [])
        data = loader.get(ps, path)
        return cls(str(path), data, loader, plugins)

    @classmethod
    def loads(
        cls,
        url: str,
        data: str,
        loader: Optional[Loader] = None,
        plugins: Optional[List[Plugin]] = None,
    ) -> "SpecDocument":
        """
        Load the description document from text

        :param url: the url of the description document, the suffix selects the parser
        :param data: description document
        :param loader: the backend to parse the description document
        :param plugins: potions to cure defects in the description document
        """
        if loader is None:
            loader = NullLoader()
        ps = Plugins(plugins or [])
        data = ps.document.loaded(url=yarl.URL(url), document=data).document
        data = loader.parse(ps, yarl.URL(url), data)
        return cls(url, data, loader, plugins)

    @classmethod
    def _parse_obj(cls, document: "JSON") -> v3.Root:
        if not isinstance(document, dict):
            raise ParseError(f"the description document is a {type(document).__name__}, not a mapping")

        if (version := document.get("openapi", None)) is None:
            if "swagger" in document:
                raise UnsupportedVersionError(f"swagger version {document['swagger']} not supported")
            raise UnsupportedVersionError("missing openapi field")

        major, _, _ = str(version).partition(".")
        if major != "3":
            raise UnsupportedVersionError(f"openapi major version {version} not supported")

        try:
            # openapi: 3.1 is a float in YAML
            return v3.Root.model_validate({**document, "openapi": str(version)})
        except pydantic.ValidationError as e:
            raise ParseError(f"invalid description document: {e}", e.errors()) from e

    def __init__(
        self,
        url: str,
        document: "JSON",
        loader: Optional[Loader] = None,
        plugins: Optional[List[Plugin]] = None,
    ) -> None:
        """
        Creates the description document from the parsed data

        :param url: the url of the description document
        :param document: The raw OpenAPI document loaded into python
        :param loader: the Loader for the description document
        :param plugins: list of plugins
        """
        self._base_url: yarl.URL = yarl.URL(url)

        self.loader: Optional[Loader] = loader

        self._refs: Dict[str, Any] = dict()
        """
        the reference index, $ref -> target
        """

        self._init_plugins(plugins)

        log.init()
        self.log = logging.getLogger("aiocommittee.SpecDocument")

        self._root = self._parse_obj(document)

        self._init_references()
        self._init_paths()

        self.plugins.init.initialized(initialized=self._root)
        self.log.debug(f"{self._base_url} {len(self._paths)} paths, {len(self._refs)} references")

    def _init_plugins(self, plugins):
        for i in plugins or []:
            i.document = self
        self.plugins = Plugins(plugins or [])

    def _init_references(self) -> None:
        """
        walk the document, note the location of each Schema and resolve all references
        """
        refs: Dict[str, str] = dict()
        schema_refs: Dict[str, str] = dict()

        def walk(node, pointer: str):
            if isinstance(node, LocatedBase):
                node._pointer = pointer
            if isinstance(node, (v3.Schema, v3.PathItem, ReferenceBase)):
                if (r := getattr(node, "ref", None)) is not None:
                    refs.setdefault(r, pointer)
                    if isinstance(node, v3.Schema):
                        schema_refs.setdefault(r, pointer)

            if isinstance(node, pydantic.BaseModel):
                for name, field in type(node).model_fields.items():
                    if name in SKIP_FIELDS:
                        continue
                    value = getattr(node, name)
                    if value is None or isinstance(value, (str, int, float, bool)):
                        continue
                    walk(value, JSONPointer.join(pointer, field.alias or name))
            elif isinstance(node, dict):
                for k, v in node.items():
                    walk(v, JSONPointer.join(pointer, k))
            elif isinstance(node, list):
                for idx, v in enumerate(node):
                    walk(v, JSONPointer.join(pointer, idx))

        walk(self._root, "#")

        for ref, location in refs.items():
            urlstr, jp = JSONReference.split(ref)
            if urlstr != "":
                err = SchemaRefError(f"{ref} at {location}: external references are not supported", location)
                err.document = self._base_url
                raise err
            try:
                target = self._root.resolve_jp(jp)
            except SchemaRefError as e:
                e.message = f"{ref} at {location}: {e.message}"
                e.args = (e.message,)
                e.element = location
                e.document = self._base_url
                raise
            if not isinstance(target, (pydantic.BaseModel, ReferenceBase)):
                raise SchemaRefError(f"{ref} at {location}: target is not an object", location)
            self._refs[ref] = target

        # a Schema $ref has to point to a Schema
        for ref, location in schema_refs.items():
            if not isinstance(self._refs[ref], v3.Schema):
                raise SchemaRefError(f"{ref} at {location}: target is not a Schema", location)

    def _init_paths(self) -> None:
        paths: Dict[str, v3.PathItem] = dict()
        for path, pathitem in self._root.paths.items():
            if pathitem.ref:
                pathitem = self.resolve(pathitem)
                if not isinstance(pathitem, v3.PathItem):
                    raise SchemaRefError(f"{path}: {pathitem} is not a PathItem", path)
            paths[path] = pathitem
        self._paths = types.MappingProxyType(paths)
        self._matcher = PathMatcher(paths)

    def resolve(self, value):
        """
        resolve a Reference, a Schema with $ref or a PathItem with $ref - follows chained references

        :param value: the object or the reference string
        :return: the target, value if it is not a reference
        """
        seen = set()
        while True:
            ref = value if isinstance(value, str) else getattr(value, "ref", None)
            if ref is None:
                return value
            if ref in seen:
                raise SchemaRefError(f"reference cycle {sorted(seen)}", ref)
            seen.add(ref)
            try:
                value = self._refs[ref]
            except KeyError:
                raise SchemaRefError(f"{ref} is not part of the description document", ref)

    def dump(self) -> "JSON":
        """
        the description document as parsed, keyed by the names used in the document
        """
        return self._root.model_dump(by_alias=True, exclude_unset=True)

    def match(self, method: str, path: str, encoded: bool = True) -> Match:
        """
        lookup the Operation for the request

        :param method: the HTTP method
        :param path: the request path
        :param encoded: the path is percent-encoded
        """
        return self._matcher.match(method, path, encoded)

    def parameters(self, pathitem: "PathItemType", operation: "OperationType") -> List["ParameterType"]:
        """
        the parameters of the Operation - Operation parameters override PathItem parameters of the same name & location
        """
        r: Dict[tuple, "ParameterType"] = dict()
        for p in pathitem.parameters + operation.parameters:
            p = self.resolve(p)
            r[(p.name, p.in_)] = p
        return list(r.values())

    def request_body(self, operation: "OperationType") -> Optional[v3.RequestBody]:
        if operation.requestBody is None:
            return None
        return self.resolve(operation.requestBody)

    def response(self, operation: "OperationType", status_code: int) -> Optional["ResponseType"]:
        """
        lookup the Response for the status code - exact, range (2XX) or default
        """
        for key in (str(status_code), f"{str(status_code)[0]}XX", "default"):
            if (r := operation.responses.get(key)) is not None:
                return self.resolve(r)
        return None

    def __repr__(self):
        return f"<{self.__class__.__name__} {self._base_url} {self.info.title} {self.info.version}>"


def load(source: Union[str, pathlib.Path], plugins: Optional[List[Plugin]] = None) -> SpecDocument:
    """
    Load the description document from an http/s url or a file

    :param source: the url or the path of the description document
    :param plugins: potions to cure defects in the description document
    :raises SpecError: the description document can not be parsed, resolved or indexed
    """
    if isinstance(source, str) and yarl.URL(source).scheme in ("http", "https"):
        return SpecDocument.load_sync(source, plugins=plugins)
    return SpecDocument.load_file(source, plugins=plugins)
