"""
plugins repair defective description documents before they are used for validation

 * Document.loaded - the text of the description document
 * Document.parsed - the parsed dict, before the models are created
 * Init.initialized - the models, references resolved and path index built
"""
import dataclasses
from typing import TYPE_CHECKING, Any, Callable, List, Optional

import yarl

if TYPE_CHECKING:
    from .openapi import SpecDocument
    from .v3 import Root


class Plugin:
    @dataclasses.dataclass
    class Context: ...

    def __init__(self) -> None:
        self._document: Optional["SpecDocument"] = None

    @property
    def document(self) -> Optional["SpecDocument"]:
        """the SpecDocument the plugin was passed to"""
        return self._document

    @document.setter
    def document(self, v):
        if self._document is not None:
            raise ValueError(f"document is already set {v}")
        self._document = v


class Init(Plugin):
    @dataclasses.dataclass
    class Context:
        initialized: Optional["Root"] = None

    def initialized(self, ctx: "Init.Context") -> "Init.Context":  # pragma: no cover
        return ctx


class Document(Plugin):
    @dataclasses.dataclass
    class Context:
        url: yarl.URL
        document: Any
        """str for loaded, dict for parsed"""

    def loaded(self, ctx: "Document.Context") -> "Document.Context":  # pragma: no cover
        return ctx

    def parsed(self, ctx: "Document.Context") -> "Document.Context":  # pragma: no cover
        return ctx


class Domain:
    """
    the plugins of one kind, calling a hook creates the Context and passes it through each plugin
    """

    def __init__(self, ctx: type, plugins: List[Plugin]):
        self.ctx = ctx
        self.plugins = plugins

    def __getattr__(self, hook: str) -> Callable[..., Any]:
        if hook.startswith("_"):
            raise AttributeError(hook)

        def dispatch(**kwargs):
            ctx = self.ctx(**kwargs)
            for plugin in self.plugins:
                if (method := getattr(plugin, hook, None)) is not None:
                    method(ctx)
            return ctx

        return dispatch


class Plugins:
    def __init__(self, plugins: List[Plugin]):
        for p in plugins:
            if not isinstance(p, Plugin):
                raise TypeError(f"{p!r} is not a Plugin")

        self.init = Domain(Init.Context, [p for p in plugins if isinstance(p, Init)])
        self.document = Domain(Document.Context, [p for p in plugins if isinstance(p, Document)])
