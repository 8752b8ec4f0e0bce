from typing import Optional, Any

import re

from pydantic import BaseModel, Field, model_validator

from .json import JSONPointer
from .errors import SchemaRefError

HTTP_METHODS = frozenset(["get", "delete", "head", "post", "put", "patch", "trace", "options"])

STATUS_CODE = re.compile(r"^(?:[1-5][0-9][0-9]|[1-5]XX|default)$")


class ObjectBase(BaseModel):
    """
    The base class for all objects of the description document.
    """

    model_config = dict(arbitrary_types_allowed=False, extra="forbid", populate_by_name=True)


class ObjectExtended(ObjectBase):
    extensions: Optional[Any] = Field(default=None)

    @model_validator(mode="before")
    def validate_ObjectExtended_extensions(cls, values):
        """
        https://github.com/OAI/OpenAPI-Specification/blob/main/versions/3.0.3.md#specification-extensions
        :param values:
        :return: values
        """
        if not isinstance(values, dict):
            return values
        e = {k[2:]: v for k, v in values.items() if k.startswith("x-")}
        if e:
            if "extensions" in values.keys():
                raise ValueError("extensions")
            values = {k: v for k, v in values.items() if not k.startswith("x-")}
            values["extensions"] = e
        return values


class ReferenceBase:
    pass


class LocatedBase:
    @property
    def pointer(self) -> str:
        """the location of this object in the description document"""
        return self._pointer


class SchemaBase(LocatedBase):
    pass


class RootBase:
    def resolve_jp(self, jp: str):
        """
        Given a $ref path, follows the document tree and returns the given attribute.

        :param jp: The path down the document tree to follow
        :type jp: str /foo/bar

        :returns: The node requested
        :rtype: ObjectBase
        :raises SchemaRefError: if the given path is not valid
        """
        path = jp.split("/")[1:]
        node: Any = self

        for idx, part in enumerate(path, start=1):
            part = JSONPointer.decode(part)

            if isinstance(node, dict):
                if part not in node:
                    raise SchemaRefError(f"Invalid path {path[:idx]} in Reference")
                node = node.get(part)
            elif isinstance(node, list):
                try:
                    node = node[int(part)]
                except (ValueError, IndexError):
                    raise SchemaRefError(f"Invalid index {path[:idx]} in Reference")
            elif isinstance(node, ObjectBase):
                name = self.nameof(type(node), part)
                if name is None or (value := getattr(node, name)) is None:
                    raise SchemaRefError(f"Invalid path {path[:idx]} in Reference")
                node = value
            else:
                raise SchemaRefError(f"Invalid node {node} in Reference {path[:idx]}")

        return node

    @staticmethod
    def nameof(model: type[BaseModel], part: str) -> Optional[str]:
        """
        map a description document key to the attribute name - e.g. "$ref" -> ref, "in" -> in_
        """
        for name, field in model.model_fields.items():
            if (field.alias or name) == part:
                return name
        return None
