import collections
import itertools
import logging
import re
from typing import Dict, List, NamedTuple, Optional, Tuple

import yarl

from .base import HTTP_METHODS
from .errors import PathAmbiguityError
from .v3 import Operation, PathItem

log = logging.getLogger("aiocommittee.matcher")

# FIXME { and } are allowed in parameter names, the regex can't handle this e.g. {name}}
PARAMETER = re.compile(r"{([^{}/]+)}")


class Match(NamedTuple):
    operation: Optional[Operation]
    """None if the path is documented but the method is not"""
    parameters: Dict[str, str]
    matched: bool
    """False if the path is not documented"""
    path: Optional[str] = None
    pathitem: Optional[PathItem] = None


NOMATCH = Match(None, {}, False)


def split(path: str) -> List[str]:
    """
    split a path into its segments, a trailing slash is not significant

    >>> split("/cities/{id}/")
    ['cities', '{id}']
    >>> split("/")
    []
    """
    segments = path.split("/")[1:]
    while segments and segments[-1] == "":
        segments.pop()
    return segments


class Segment:
    def __init__(self, value: str):
        self.value = value
        self.names: List[str] = PARAMETER.findall(value)
        self.pattern: Optional[re.Pattern] = None
        if self.names:
            parts = PARAMETER.split(value)
            # literal, name, literal, name, …, literal
            self.prefix, self.suffix = parts[0], parts[-1]
            self.pattern = re.compile(
                "".join(re.escape(p) if idx % 2 == 0 else "([^/]+?)" for idx, p in enumerate(parts))
            )

    @property
    def is_parameter(self) -> bool:
        return self.pattern is not None

    def match(self, value: str) -> Optional[Dict[str, str]]:
        if self.pattern is None:
            return {} if value == self.value else None
        if (m := self.pattern.fullmatch(value)) is None:
            return None
        return dict(zip(self.names, m.groups()))

    def overlaps(self, other: "Segment") -> bool:
        if not self.is_parameter and not other.is_parameter:
            return self.value == other.value
        if not self.is_parameter:
            return other.match(self.value) is not None
        if not other.is_parameter:
            return self.match(other.value) is not None
        if len(self.names) > 1 or len(other.names) > 1:
            return True
        return (self.prefix.startswith(other.prefix) or other.prefix.startswith(self.prefix)) and (
            self.suffix.endswith(other.suffix) or other.suffix.endswith(self.suffix)
        )


class Template:
    """
    a path template of the description document, e.g. /cities/{id}
    """

    def __init__(self, path: str, pathitem: PathItem):
        self.path = path
        self.pathitem = pathitem
        self.segments = [Segment(s) for s in split(path)]
        self.parameters = sum(1 for s in self.segments if s.is_parameter)

    def match(self, segments: List[str]) -> Optional[Dict[str, str]]:
        if len(segments) != len(self.segments):
            return None
        r: Dict[str, str] = dict()
        for segment, value in zip(self.segments, segments):
            if (v := segment.match(value)) is None:
                return None
            r.update(v)
        return r

    def overlaps(self, other: "Template") -> bool:
        if len(self.segments) != len(other.segments):
            return False
        return all(a.overlaps(b) for a, b in zip(self.segments, other.segments))

    def __repr__(self):
        return f"<{self.__class__.__name__} {self.path}>"


class PathMatcher:
    """
    maps method & path of a request to the PathItem/Operation of the description document

    templates are grouped by their number of segments, within a group the template with
    less parameter segments is preferred
    """

    def __init__(self, paths: Dict[str, PathItem]):
        self._templates: Dict[int, List[Template]] = collections.defaultdict(list)
        for path, pathitem in paths.items():
            t = Template(path, pathitem)
            self._templates[len(t.segments)].append(t)

        for templates in self._templates.values():
            templates.sort(key=lambda x: (x.parameters, x.path))
            self._check_ambiguity(templates)

    @staticmethod
    def _check_ambiguity(templates: List[Template]) -> None:
        for parameters, group in itertools.groupby(templates, key=lambda x: x.parameters):
            group = list(group)
            for a, b in itertools.combinations(group, 2):
                if a.overlaps(b):
                    raise PathAmbiguityError(
                        [a.path, b.path],
                        f"{a.path} and {b.path} match the same paths with {parameters} parameter segment(s)",
                    )

    @property
    def paths(self) -> List[str]:
        return sorted(t.path for t in itertools.chain.from_iterable(self._templates.values()))

    def match(self, method: str, path: str, encoded: bool = True) -> Match:
        """
        lookup the Operation for method & path

        :param method: the HTTP method
        :param path: the request path, without query
        :param encoded: path is percent-encoded (e.g. the raw_path of the request)
        :return: Match
        """
        if encoded:
            try:
                segments = [self._unquote(s) for s in split(yarl.URL.build(path=path or "/", encoded=True).raw_path)]
            except ValueError:
                log.debug(f"invalid path {path!r}")
                return NOMATCH
        else:
            segments = split(path or "/")

        method = method.lower()
        for template in self._templates.get(len(segments), []):
            if (parameters := template.match(segments)) is None:
                continue
            operation = getattr(template.pathitem, method) if method in HTTP_METHODS else None
            return Match(operation, parameters, True, template.path, template.pathitem)
        return NOMATCH

    @staticmethod
    def _unquote(segment: str) -> str:
        """
        percent-decode a single segment, an encoded / does not split the segment
        """
        if "%" not in segment:
            return segment
        return yarl.URL.build(path=f"/{segment}", encoded=True).parts[-1]

    def operations(self) -> List[Tuple[str, str, Operation]]:
        """
        all documented (path, method, Operation)
        """
        templates = sorted(itertools.chain.from_iterable(self._templates.values()), key=lambda x: x.path)
        return [(t.path, method, op) for t in templates for method, op in t.pathitem.operations.items()]
