"""Entry point for re-populating the forms of a rendered document."""

from __future__ import annotations

import logging
from typing import Any, Mapping, Optional, Union

from .context import NO_ERRORS, ErrorLookup, RequestContext
from .errors import ParseFailure
from .loader import LoadResult, load_document
from .matcher import match_forms
from .models import RewriteConfig
from .rewriter import rewrite_form
from .serializer import serialize

logger = logging.getLogger(__name__)

Content = Union[str, bytes]


def _level(name: str) -> int:
    level = logging.getLevelName(name)
    return level if isinstance(level, int) else logging.CRITICAL


class FormPopulator:
    """Rewrites form controls so a re-rendered page shows what was submitted.

    One instance can serve any number of documents; each ``populate`` call
    parses, rewrites and serializes its own tree.
    """

    def __init__(
        self,
        config: Optional[RewriteConfig] = None,
        *,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self.config = config or RewriteConfig()
        self.logger = logger or logging.getLogger(self.config.logger_name or __name__)

    def populate(
        self,
        content: Content,
        *,
        request: Optional[RequestContext] = None,
        errors: Optional[ErrorLookup] = None,
        forms: Optional[Mapping[str, Mapping[str, Any]]] = None,
        content_type: Optional[str] = None,
    ) -> Content:
        """Return ``content`` with matching forms populated.

        ``forms`` maps form ids to the values each form gets; without it
        forms submitting to the current request use ``request.data``.
        Raises ParseFailure, UnsupportedEncoding or SerializationFailure.
        """

        if not content:
            return content
        config = self.config
        if forms is None and isinstance(config.populate, dict):
            forms = config.populate

        result = load_document(content, config, content_type=content_type)
        if result.diagnostics:
            self._report_parse_failure(result, content)
            raise ParseFailure(result.diagnostics)

        document = result.document
        errors = errors or NO_ERRORS
        populated = 0
        for form, values in match_forms(document, request=request, forms=forms):
            rewrite_form(form, values, errors, document, config, result.converter)
            populated += 1
        logger.debug("Populated %d form(s)", populated)
        return serialize(document, config)

    def _report_parse_failure(self, result: LoadResult, content: Content) -> None:
        if not self.config.log_parse_errors:
            return
        if isinstance(content, (bytes, bytearray)):
            content = bytes(content).decode("utf-8", errors="replace")
        details = "\n".join(str(diagnostic) for diagnostic in result.diagnostics)
        self.logger.log(
            _level(self.config.logging_level),
            "Form population failed to parse the document:\n%s\n\nResponse content:\n%s",
            details,
            content,
        )


__all__ = ["FormPopulator"]
