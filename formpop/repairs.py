"""Ordered text repairs for serialized XHTML.

Each repair is a literal substitution; the order of ``CDATA_FENCE_FIXES``
matters because the closing script fence produced by the third rule must not
be rewritten again by the fourth.
"""

from __future__ import annotations

import re
from typing import Optional

CDATA_FENCE_FIXES = (
    (
        re.compile(r"<(style)([^>]*)>\s*<!\[CDATA\[", re.IGNORECASE),
        r"<\1\2><!--/*--><![CDATA[/*><!--*/",
    ),
    (
        re.compile(r"\]\]></(style)>", re.IGNORECASE),
        r"/*]]>*/--></\1>",
    ),
    (
        re.compile(r"<(script)([^>]*)>\s*<!\[CDATA\[", re.IGNORECASE),
        r"<\1\2><!--//--><![CDATA[//><!--",
    ),
    (
        re.compile(r"(?<!<!)\]\]></(script)>", re.IGNORECASE),
        r"//--><!]]></\1>",
    ),
)

AUTO_PROLOG_RE = re.compile(r"\A\s*<\?xml[^>]*?\?>\s*")
DUPLICATE_PROLOG_RE = re.compile(r"<\?xml[^>]*?\?\?>\s*")
FIRST_START_TAG_RE = re.compile(r"<[A-Za-z_][^>]*>")
XMLNS_ATTR_RE = re.compile(r"""\s+xmlns(?::([\w.\-]+))?\s*=\s*(["'])(.*?)\2""")

# fences a previous pass wrapped around script and style content
_FENCES = {
    "script": re.compile(r"\A\s*<!--//-->//><!--(.*)//--><!\s*\Z", re.DOTALL),
    "style": re.compile(r"\A\s*<!--/\*-->/\*><!--\*/(.*)/\*\*/-->\s*\Z", re.DOTALL),
}


def fix_cdata_fences(text: str) -> str:
    """Comment-wrap CDATA fences in style and script blocks."""

    for pattern, replacement in CDATA_FENCE_FIXES:
        text = pattern.sub(replacement, text)
    return text


def unwrap_cdata_fence(raw: str, element: str) -> Optional[str]:
    """Return the content inside fences added by ``fix_cdata_fences``, if any."""

    pattern = _FENCES.get(element)
    if pattern is None:
        return None
    match = pattern.match(raw)
    return match.group(1) if match else None


def remove_auto_prolog(text: str) -> str:
    """Drop a leading XML declaration."""

    return AUTO_PROLOG_RE.sub("", text, count=1)


def remove_duplicate_prolog(text: str) -> str:
    """Drop malformed ``<?xml ...??>`` declarations."""

    return DUPLICATE_PROLOG_RE.sub("", text)


def collapse_duplicate_namespace(text: str) -> str:
    """Keep only the first declaration of each namespace prefix on the root element."""

    match = FIRST_START_TAG_RE.search(text)
    if match is None:
        return text
    seen = set()

    def _first_only(declaration: re.Match) -> str:
        prefix = declaration.group(1)
        if prefix in seen:
            return ""
        seen.add(prefix)
        return declaration.group(0)

    start_tag = XMLNS_ATTR_RE.sub(_first_only, match.group(0))
    return text[: match.start()] + start_tag + text[match.end() :]


__all__ = [
    "CDATA_FENCE_FIXES",
    "collapse_duplicate_namespace",
    "fix_cdata_fences",
    "remove_auto_prolog",
    "remove_duplicate_prolog",
    "unwrap_cdata_fence",
]
