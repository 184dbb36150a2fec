"""
Media-type parsing and allow-list classification.

Declared Content-Type values are split with python-multipart's
``parse_options_header`` and then held to RFC 2045 token rules: the
``type/subtype`` pair is lower-cased and parameters (``; charset=...``) are
validated for syntax and then ignored. The canonical media type is then
looked up in a fixed allow-list that maps it to a file extension. There is
no wildcard matching.
"""

import re

from python_multipart.multipart import parse_options_header

from tubely.core.errors import InvalidInputError


VIDEO_MEDIA_TYPES: dict[str, str] = {
    "video/mp4": "mp4",
}

THUMBNAIL_MEDIA_TYPES: dict[str, str] = {
    "image/png": "png",
    "image/jpeg": "jpeg",
}

# RFC 2045 token: any printable ASCII except SPACE and tspecials
_TOKEN = r"[!#$%&'*+\-.^_`|~0-9A-Za-z]+"
_QUOTED_STRING = r'"(?:[^"\\\r\n]|\\.)*"'

_MEDIA_TYPE_RE = re.compile(rf"^{_TOKEN}/{_TOKEN}$")
_PARAMETER_RE = re.compile(rf"^;\s*{_TOKEN}\s*=\s*(?:{_TOKEN}|{_QUOTED_STRING})\s*")


def parse_media_type(raw: str | None) -> str:
    """
    Return the lower-cased ``type/subtype`` of a Content-Type header value.

    Raises:
        InvalidInputError: If the value is empty or syntactically malformed.
    """
    if not raw or not raw.strip():
        raise InvalidInputError("Invalid Content-Type")

    head, separator, params = raw.partition(";")
    if _MEDIA_TYPE_RE.match(head.strip()) is None:
        raise InvalidInputError("Invalid Content-Type")

    rest = separator + params
    while rest:
        # A bare trailing ";" is tolerated
        if rest.strip() == ";":
            break
        param = _PARAMETER_RE.match(rest)
        if param is None:
            raise InvalidInputError("Invalid Content-Type")
        rest = rest[param.end():]

    try:
        media_type, _ = parse_options_header(raw)
    except ValueError as e:
        raise InvalidInputError("Invalid Content-Type") from e
    return media_type.decode("latin-1").strip().lower()


def classify_content_type(raw: str | None, allowed: dict[str, str]) -> tuple[str, str]:
    """
    Validate a declared Content-Type against an allow-list.

    Args:
        raw: The declared Content-Type of the uploaded part.
        allowed: Mapping of canonical media type to file extension.

    Returns:
        (media_type, extension) for a supported type.

    Raises:
        InvalidInputError: For malformed or unsupported media types.
    """
    media_type = parse_media_type(raw)
    extension = allowed.get(media_type)
    if extension is None:
        raise InvalidInputError(f"Unsupported media type: {media_type}")
    return media_type, extension
