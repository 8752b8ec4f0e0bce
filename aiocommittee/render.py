import abc
import json
from typing import Dict, Tuple


class ErrorRenderer(abc.ABC):
    """
    Renders the error responses of the middleware

    subclass and pass an instance as ``error_renderer`` to create your own error format
    """

    @abc.abstractmethod
    def render(self, status: int, id: str, message: str) -> Tuple[int, Dict[str, str], bytes]:
        """
        :param status: the HTTP status code
        :param id: the error id, e.g. bad_request
        :param message: the error description
        :return: status code, headers, body
        """
        raise NotImplementedError("render")

    def __repr__(self):
        return f"{self.__class__.__qualname__}"


class JSONErrorRenderer(ErrorRenderer):
    """
    {"id": "bad_request", "message": "#/components/schemas/city missing required parameters: name"}
    """

    media_type = "application/json"

    def render(self, status: int, id: str, message: str) -> Tuple[int, Dict[str, str], bytes]:
        body = json.dumps({"id": id, "message": message}).encode()
        return status, {"content-type": self.media_type, "content-length": str(len(body))}, body


class ProblemRenderer(JSONErrorRenderer):
    """
    RFC 9457 problem details
    """

    media_type = "application/problem+json"

    def render(self, status: int, id: str, message: str) -> Tuple[int, Dict[str, str], bytes]:
        body = json.dumps({"type": "about:blank", "title": id, "status": status, "detail": message}).encode()
        return status, {"content-type": self.media_type, "content-length": str(len(body))}, body
