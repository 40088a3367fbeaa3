"""Selection of the forms a rewrite applies to."""

from __future__ import annotations

import logging
import re
from typing import Any, Iterator, Mapping, Optional, Tuple

from bs4 import Tag

from .context import RequestContext
from .loader import Document
from .values import SubmittedValues

logger = logging.getLogger(__name__)

SCHEME_RE = re.compile(r"^[A-Za-z][A-Za-z0-9+.\-]*:")
ORIGIN_RE = re.compile(r"^([A-Za-z][A-Za-z0-9+.\-]*://[^/]*)(.*)$", re.DOTALL)
_PATH_RULES = (
    (re.compile(r"/\./"), "/"),
    (re.compile(r"/\.$"), "/"),
    (re.compile(r"[^./]+/\.\.(?:/|\Z)"), ""),
    (re.compile(r"/{2,}"), "/"),
)


def normalize_path(path: str) -> str:
    """Collapse ``./``, ``../`` and duplicate slashes until nothing changes."""

    previous = None
    while previous != path:
        previous = path
        for pattern, replacement in _PATH_RULES:
            path = pattern.sub(replacement, path)
    return path


def strip_fragment(action: str) -> str:
    return action.strip().split("#", 1)[0]


def base_href(document: Document, request_url: str) -> str:
    """The URL relative actions resolve against: ``<base href>`` or the request URL."""

    for head in document.find_all("head"):
        bases = [base for base in document.find_all("base", head) if base.get("href")]
        if bases:
            return str(bases[0]["href"])
        break
    return request_url


def base_directory(href: str) -> str:
    return href[: href.rfind("/") + 1]


def action_matches(action: str, request: RequestContext, href: str) -> bool:
    action = strip_fragment(action)
    if action == "":
        # an empty action submits to the base URL itself
        return strip_fragment(href) == request.url
    if action == request.url:
        return True
    if action.startswith("/"):
        return normalize_path(action) == request.request_uri
    if SCHEME_RE.match(action):
        return False
    return resolve_relative(base_directory(href), action) == request.url


def resolve_relative(base_dir: str, action: str) -> str:
    joined = base_dir + action
    match = ORIGIN_RE.match(joined)
    if match:
        return match.group(1) + normalize_path(match.group(2))
    return normalize_path(joined)


def match_forms(
    document: Document,
    *,
    request: Optional[RequestContext] = None,
    forms: Optional[Mapping[str, Any]] = None,
) -> Iterator[Tuple[Tag, SubmittedValues]]:
    """Yield each form to populate together with the values it gets.

    With ``forms`` (values keyed by form id) only forms with a listed id are
    used. Otherwise every form whose action points back at the current
    request is populated from the request data.
    """

    if forms is not None:
        for form in document.find_all("form"):
            form_id = form.get("id")
            if form_id is not None and form_id in forms:
                yield form, SubmittedValues(forms[form_id])
        return

    request = request or RequestContext()
    values = SubmittedValues(request.data)
    href = base_href(document, request.url)
    for form in document.find_all("form"):
        action = form.get("action")
        if action is None:
            continue
        if action_matches(str(action), request, href):
            yield form, values
        else:
            logger.debug("Skipping form with action %r", action)


__all__ = [
    "action_matches",
    "base_directory",
    "base_href",
    "match_forms",
    "normalize_path",
    "resolve_relative",
    "strip_fragment",
]
