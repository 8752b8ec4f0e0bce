from typing import Tuple


class JSONPointer:
    """
    RFC 6901 JSON Pointer helpers
    """

    @staticmethod
    def decode(part: str) -> str:
        """
        https://swagger.io/docs/specification/using-ref/
        :param part:
        """
        part = part.replace("~1", "/")
        part = part.replace("~0", "~")
        return part

    @staticmethod
    def encode(part: str) -> str:
        part = str(part)
        part = part.replace("~", "~0")
        part = part.replace("/", "~1")
        return part

    @staticmethod
    def join(base: str, *parts) -> str:
        """
        append the encoded parts to a fragment pointer

        >>> JSONPointer.join("#/paths", "/cities", "get")
        '#/paths/~1cities/get'
        """
        return "/".join([base] + [JSONPointer.encode(i) for i in parts])


class JSONReference:
    @staticmethod
    def split(url: str) -> Tuple[str, str]:
        """
        split the url into path and fragment
        """
        u, _, f = url.partition("#")
        return u, f
