"""Character encoding helpers for documents and submitted values."""

from __future__ import annotations

import codecs
import re
from typing import Any, Optional

from .errors import UnsupportedEncoding

CHARSET_RE = re.compile(r"charset=\s*[\"']?([^\s;\"']+)", re.IGNORECASE)
XML_ENCODING_RE = re.compile(r"""^<\?xml[^?]*?encoding\s*=\s*["']([^"']+)["']""")


def charset_from_content_type(content_type: Optional[str]) -> Optional[str]:
    """Return the ``charset`` parameter of a Content-Type value."""

    if not content_type:
        return None
    match = CHARSET_RE.search(content_type)
    return match.group(1).lower() if match else None


def prolog_encoding(text: str) -> Optional[str]:
    match = XML_ENCODING_RE.match(text)
    return match.group(1).lower() if match else None


class EncodingConverter:
    """Converts submitted values for insertion into a document.

    Submitted values are UTF-8; the tree holds text, and characters the
    document encoding cannot represent become character references when the
    document is written out.
    """

    def __init__(self, encoding: str) -> None:
        try:
            info = codecs.lookup(encoding)
        except LookupError as exc:
            raise UnsupportedEncoding(encoding) from exc
        self.encoding = encoding.lower()
        self.codec_name = info.name

    def to_document(self, value: Any) -> Any:
        if isinstance(value, list):
            return [self._text(item) for item in value]
        return self._text(value)

    @staticmethod
    def _text(value: Any) -> Any:
        if isinstance(value, bytes):
            # undecodable bytes survive as surrogates and are caught on output
            return value.decode("utf-8", errors="surrogateescape")
        if isinstance(value, list):
            return [EncodingConverter._text(item) for item in value]
        return value

    def encode(self, text: str) -> bytes:
        return text.encode(self.codec_name, errors="xmlcharrefreplace")


__all__ = [
    "EncodingConverter",
    "charset_from_content_type",
    "prolog_encoding",
]
