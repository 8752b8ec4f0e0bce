import abc
import json
import logging
import re
from pathlib import Path

import yaml
import httpx
import yarl

from .errors import ParseError
from .plugin import Plugins

log = logging.getLogger("aiocommittee.loader")


class YAML12Loader(yaml.SafeLoader):
    """
    OpenAPI uses YAML 1.2, pyyaml is limited to 1.1

    remove the implicit resolvers of the SafeLoader and add the YAML 1.2 core schema resolvers,
    so dates stay strings and yes/no/on/off are not booleans
    """

    _core_resolvers = [
        ["bool", re.compile(r"""^(?:true|True|TRUE|false|False|FALSE)$""", re.X), list("tTfF")],
        [
            "int",
            re.compile(
                r"""^(?:
                                  |0o[0-7]+
                                  |[-+]?(?:[0-9]+)
                                  |0x[0-9a-fA-F]+
                                  )$""",
                re.X,
            ),
            list("-+0123456789"),
        ],
        [
            "float",
            re.compile(
                r"""^(?:[-+]?(?:\.[0-9]+|[0-9]+(\.[0-9]*)?)(?:[eE][-+]?[0-9]+)?
                                  |[-+]?\.(?:inf|Inf|INF)
                                  |\.(?:nan|NaN|NAN))$""",
                re.X,
            ),
            list("-+0123456789."),
        ],
        ["null", re.compile(r"""^(?:~||null|Null|NULL)$""", re.X), ["~", "n", "N", ""]],
    ]
    """
    core tags from
    https://github.com/yaml/pyyaml/pull/700/files
    """

    @classmethod
    def remove_implicit_resolver(cls, tag_to_remove):
        """
        Remove implicit resolvers for a particular tag

        Takes care not to modify resolvers in super classes.
        """
        if "yaml_implicit_resolvers" not in cls.__dict__:
            cls.yaml_implicit_resolvers = cls.yaml_implicit_resolvers.copy()

        for first_letter, mappings in cls.yaml_implicit_resolvers.items():
            cls.yaml_implicit_resolvers[first_letter] = [
                (tag, regexp) for tag, regexp in mappings if tag != tag_to_remove
            ]


for _tag in {tag for mappings in YAML12Loader.yaml_implicit_resolvers.values() for tag, _ in mappings}:
    YAML12Loader.remove_implicit_resolver(_tag)
for _tag, _regex, _initial in YAML12Loader._core_resolvers:
    YAML12Loader.add_implicit_resolver(f"tag:yaml.org,2002:{_tag}", _regex, _initial)


class Loader(abc.ABC):
    """
    Loaders are used to 'get' description documents:

     * load
     * decode
     * parse
    """

    def __init__(self, yload: type[yaml.SafeLoader] = YAML12Loader):
        self.yload = yload

    @abc.abstractmethod
    def load(self, plugins: Plugins, url: yarl.URL, codec: str | None = None) -> str:
        """
        load and decode description document

        :param plugins: collection of `aiocommittee.plugin.Document` plugins
        :param url: location of the description document
        :param codec:
        :return: decoded data
        """
        raise NotImplementedError("load")

    @classmethod
    def decode(cls, data: bytes, codec: str | None) -> str:
        """
        decode bytes to ascii or utf-8

        :param data:
        :param codec:
        :return:
        """
        if codec is not None:
            codecs = [codec]
        else:
            codecs = ["ascii", "utf-8"]
        for c in codecs:
            try:
                return data.decode(c)
            except UnicodeError:
                continue
        raise ParseError(f"unable to decode the description document using {codecs}")

    def _parse(self, suffix: str, data: str):
        if suffix in (".yaml", ".yml"):
            return yaml.load(data, Loader=self.yload)
        elif suffix == ".json":
            return json.loads(data)
        raise ValueError(suffix)

    def parse(self, plugins: Plugins, url: yarl.URL, data: str):
        """
        parse the description document as json or yaml

        :param plugins: collection of `aiocommittee.plugin.Document` plugins
        :param url: location of the description document
        :param data: decoded data of the description document
        :return: the parsed document
        """
        suffix = Path(url.path).suffix
        suffixes = [suffix] if suffix in (".yaml", ".yml", ".json") else [".json", ".yaml"]

        errors = []
        for s in suffixes:
            try:
                document = self._parse(s, data)
                break
            except (yaml.YAMLError, json.JSONDecodeError) as e:
                errors.append(e)
        else:
            err = ParseError(f"{url} is not valid {'/'.join(s[1:] for s in suffixes)}: {errors[-1]}")
            err.document = url
            raise err from errors[-1]

        return plugins.document.parsed(url=url, document=document).document

    def get(self, plugins: Plugins, url: yarl.URL):
        """
        load & parse the description document
        :param plugins: collection of `aiocommittee.plugin.Document` plugins
        :param url: location of the description document
        :return:
        """
        data = self.load(plugins, url)
        return self.parse(plugins, url, data)

    def __repr__(self):
        return f"{self.__class__.__qualname__}"


class NullLoader(Loader):
    """
    Loader does not load anything - used for description documents passed as text
    """

    def load(self, plugins: Plugins, url: yarl.URL, codec: str | None = None) -> str:
        raise NotImplementedError("load")


class WebLoader(Loader):
    """
    Loader downloads data via http/s using the supplied session_factory
    """

    def __init__(self, baseurl: yarl.URL, session_factory=httpx.Client, yload: type[yaml.SafeLoader] = YAML12Loader):
        super().__init__(yload)
        assert isinstance(baseurl, yarl.URL)
        self.baseurl: yarl.URL = baseurl
        self.session_factory = session_factory

    def load(self, plugins: Plugins, url: yarl.URL, codec: str | None = None) -> str:
        url = self.baseurl.join(url)
        log.debug(f"load {url}")
        with self.session_factory() as session:
            resp = session.get(str(url))
            if not resp.is_success:
                raise FileNotFoundError(f"{url} {resp.status_code}")
            data = resp.content
        text = self.decode(data, codec)
        return plugins.document.loaded(url=url, document=text).document

    def __repr__(self):
        return f"{self.__class__.__qualname__}(baseurl={self.baseurl})"


class FileSystemLoader(Loader):
    """
    Loader to use the local filesystem
    """

    def __init__(self, base: Path, yload: type[yaml.SafeLoader] = YAML12Loader):
        """
        :param base: basedir - lookups are relative to this
        :param yload:
        """
        super().__init__(yload)
        assert isinstance(base, Path)
        self.base = base

    def load(self, plugins: Plugins, url: yarl.URL, codec: str | None = None) -> str:
        assert isinstance(url, yarl.URL)
        path = (self.base / Path(url.path)).resolve()
        if not path.is_relative_to(self.base.resolve()):
            raise FileNotFoundError(f"{path} is not relative to {self.base}")
        log.debug(f"load {path}")
        data = path.read_bytes()
        text = self.decode(data, codec)
        return plugins.document.loaded(url=url, document=text).document

    def __repr__(self):
        return f"{self.__class__.__qualname__}(base={self.base})"
