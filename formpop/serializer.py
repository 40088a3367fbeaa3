"""Turn the rewritten tree back into markup."""

from __future__ import annotations

import re
from typing import Union

from bs4 import CData, Comment, Doctype, NavigableString, Tag

from .errors import SerializationFailure
from .loader import Document
from .models import RewriteConfig
from .repairs import (
    collapse_duplicate_namespace,
    fix_cdata_fences,
    remove_auto_prolog,
    remove_duplicate_prolog,
    unwrap_cdata_fence,
)

RAW_TEXT_ELEMENTS = ("script", "style")


def _raw_text(element: Tag) -> str:
    parts = []
    for child in element.contents:
        if isinstance(child, Comment):
            parts.append(f"<!--{child}-->")
        else:
            parts.append(str(child))
    return "".join(parts)


def protect_raw_text(document: Document) -> None:
    """Keep script and style content that needs escaping inside CDATA sections.

    The XML parser reports CDATA sections as plain text; without this step
    ``<`` and ``&`` in scripts would come back as entity references.
    """

    for name in RAW_TEXT_ELEMENTS:
        for element in document.find_all(name):
            if not element.contents or any(isinstance(c, Tag) for c in element.contents):
                continue
            raw = _raw_text(element)
            text = unwrap_cdata_fence(raw, name)
            if text is None:
                if any(isinstance(c, Comment) for c in element.contents):
                    continue
                text = raw
            if ("<" in text or "&" in text) and "]]>" not in text:
                element.clear()
                element.append(CData(text))
            elif text != raw:
                element.clear()
                element.append(NavigableString(text))


def trim_doctype_newline(document: Document) -> None:
    """Drop the newline that follows the doctype in the parsed tree.

    The serializer always writes a newline after a doctype, so keeping the
    parsed one would add another line on every pass.
    """

    for node in document.soup.contents:
        if not isinstance(node, Doctype):
            continue
        following = node.next_sibling
        if type(following) is NavigableString and following.startswith("\n"):
            rest = str(following)[1:]
            if rest:
                following.replace_with(NavigableString(rest))
            else:
                following.extract()
        return


def repair_xhtml(text: str, document: Document, config: RewriteConfig) -> str:
    text = collapse_duplicate_namespace(text)
    if config.cdata_fix and (not document.parsed_as_xml or not document.proper_xhtml):
        text = fix_cdata_fences(text)
    if config.remove_auto_xml_prolog and not document.has_xml_prolog:
        text = remove_auto_prolog(text)
    elif not document.parsed_as_xml:
        text = remove_duplicate_prolog(text)
    return text


def serialize(document: Document, config: RewriteConfig) -> Union[str, bytes]:
    """Serialize ``document`` in its resolved encoding.

    Returns bytes when the document was loaded from bytes, text otherwise.
    Raises SerializationFailure instead of returning partial output.
    """

    try:
        if document.parsed_as_xml:
            protect_raw_text(document)
        else:
            trim_doctype_newline(document)
        text = document.soup.decode(
            eventual_encoding=document.encoding, formatter="minimal"
        )
        if document.is_xhtml:
            text = repair_xhtml(text, document, config)
        # lone surrogates from undecodable input fail here
        text.encode("utf-8")
        if document.binary:
            return text.encode(document.encoding, errors="xmlcharrefreplace")
        return text
    except UnicodeError as exc:
        raise SerializationFailure(SerializationFailure.MALFORMED_ENCODING, str(exc)) from exc
    except RecursionError as exc:
        raise SerializationFailure(SerializationFailure.DEPTH_LIMIT) from exc
    except re.error as exc:
        raise SerializationFailure(SerializationFailure.ENGINE_ERROR, str(exc)) from exc


__all__ = ["protect_raw_text", "repair_xhtml", "serialize", "trim_doctype_newline"]
