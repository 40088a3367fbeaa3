"""Parse response markup into a mutable tree."""

from __future__ import annotations

import logging
import re
import warnings
from dataclasses import dataclass, field
from html.parser import HTMLParser
from typing import List, Optional, Tuple, Union

from bs4 import BeautifulSoup, Tag, XMLParsedAsHTMLWarning
from bs4.dammit import UnicodeDammit
from lxml import etree

from .encoding import EncodingConverter, charset_from_content_type, prolog_encoding
from .errors import Diagnostic
from .models import RewriteConfig

logger = logging.getLogger(__name__)

XML_PROLOG_RE = re.compile(r"^<\?xml[^?]*\?>")
XHTML_DOCTYPE_RE = re.compile(r"<!DOCTYPE[^>]+XHTML[^>]+", re.IGNORECASE)
XHTML_MEDIA_TYPE = "application/xhtml+xml"

VOID_ELEMENTS = frozenset(
    {
        "area", "base", "basefont", "bgsound", "br", "col", "embed", "frame",
        "hr", "img", "input", "isindex", "keygen", "link", "meta", "param",
        "source", "track", "wbr",
    }
)
# end tags the HTML syntax lets authors omit
OPTIONAL_END_TAGS = frozenset(
    {
        "html", "head", "body", "p", "li", "dt", "dd", "option", "optgroup",
        "colgroup", "caption", "thead", "tbody", "tfoot", "tr", "td", "th",
        "rb", "rt", "rtc", "rp",
    }
)


@dataclass
class Document:
    """Parsed markup plus what was learned about it while loading."""

    soup: BeautifulSoup
    dialect: str = "html"
    parsed_as_xml: bool = False
    has_xml_prolog: bool = False
    declared_encoding: Optional[str] = None
    detected_encoding: Optional[str] = None
    encoding: str = "utf-8"
    proper_xhtml: bool = False
    namespace: Optional[str] = None
    binary: bool = False

    @property
    def is_xhtml(self) -> bool:
        return self.dialect == "xhtml"

    @property
    def root(self) -> Optional[Tag]:
        return self.soup.find(True)

    def matches(self, tag: object, name: str) -> bool:
        """True if ``tag`` is the element ``name`` in the document's vocabulary."""

        if not isinstance(tag, Tag) or tag.name is None:
            return False
        if not self.parsed_as_xml:
            return tag.name == name
        return tag.name.rpartition(":")[2] == name and tag.namespace == self.namespace

    def find_all(self, name: str, scope: Optional[Tag] = None) -> List[Tag]:
        scope = self.soup if scope is None else scope
        return scope.find_all(lambda tag: self.matches(tag, name))

    def find_parents(self, tag: Tag, name: str) -> List[Tag]:
        return tag.find_parents(lambda parent: self.matches(parent, name))


@dataclass
class LoadResult:
    document: Document
    diagnostics: List[Diagnostic] = field(default_factory=list)
    converter: Optional[EncodingConverter] = None


class _StructureChecker(HTMLParser):
    """Reports tags the tree builder would have to close or drop on its own."""

    def __init__(self) -> None:
        super().__init__(convert_charrefs=True)
        self.open_elements: List[Tuple[str, int]] = []
        self.diagnostics: List[Diagnostic] = []

    def _report(self, message: str, line: Optional[int] = None) -> None:
        self.diagnostics.append(Diagnostic(line or self.getpos()[0], message))

    def handle_starttag(self, tag, attrs):
        if tag not in VOID_ELEMENTS:
            self.open_elements.append((tag, self.getpos()[0]))

    def handle_startendtag(self, tag, attrs):
        pass

    def handle_endtag(self, tag):
        if tag in VOID_ELEMENTS:
            return
        for depth in range(len(self.open_elements) - 1, -1, -1):
            if self.open_elements[depth][0] != tag:
                continue
            for name, _ in self.open_elements[depth + 1 :]:
                if name not in OPTIONAL_END_TAGS:
                    self._report(f"Opening and ending tag mismatch: {name} and {tag}")
            del self.open_elements[depth:]
            return
        self._report(f"Unexpected end tag : {tag}")

    def close(self):
        super().close()
        for name, line in self.open_elements:
            if name not in OPTIONAL_END_TAGS:
                self._report(f"Premature end of data in tag {name}", line)
        self.open_elements.clear()


def detect_dialect(text: str, force_output_mode: Optional[str], *, has_prolog: bool) -> str:
    if force_output_mode in ("html", "xhtml"):
        return force_output_mode
    if has_prolog or XHTML_DOCTYPE_RE.search(text):
        return "xhtml"
    return "html"


def _xml_diagnostics(data: bytes, encoding: Optional[str]) -> List[Diagnostic]:
    parser = etree.XMLParser(recover=True, no_network=True, encoding=encoding)
    try:
        etree.fromstring(data, parser)
    except etree.XMLSyntaxError as exc:
        if not len(parser.error_log):
            return [Diagnostic(exc.lineno or 0, exc.msg)]
    return [
        Diagnostic(entry.line, entry.message)
        for entry in parser.error_log
        if entry.level >= etree.ErrorLevels.ERROR
    ]


def _parse_xml(content: Union[str, bytes], binary: bool):
    if binary:
        data, override = bytes(content), None
    else:
        # the tree gets text already decoded; a declared encoding must not apply again
        data, override = content.encode("utf-8"), "utf-8"
    diagnostics = _xml_diagnostics(data, override)
    soup = BeautifulSoup(data, "xml", from_encoding=override)
    detected = soup.original_encoding if binary else None
    return soup, detected, diagnostics


def _parse_html(content: Union[str, bytes], binary: bool, charset: Optional[str]):
    detected = None
    if binary:
        dammit = UnicodeDammit(
            bytes(content),
            known_definite_encodings=[charset] if charset else [],
            is_html=True,
        )
        if dammit.unicode_markup is None:
            return BeautifulSoup("", "html.parser"), None, [
                Diagnostic(1, "Document could not be decoded")
            ]
        text = dammit.unicode_markup
        detected = dammit.original_encoding
    else:
        text = content
    checker = _StructureChecker()
    checker.feed(text)
    checker.close()
    with warnings.catch_warnings():
        warnings.simplefilter("ignore", XMLParsedAsHTMLWarning)
        soup = BeautifulSoup(text, "html.parser")
    return soup, detected, checker.diagnostics


def _inspect_meta(document: Document, content_type: Optional[str]) -> None:
    if content_type and XHTML_MEDIA_TYPE in content_type.lower():
        document.proper_xhtml = True
    for head in document.find_all("head"):
        for meta in document.find_all("meta", head):
            if document.declared_encoding is None and meta.get("charset"):
                document.declared_encoding = str(meta["charset"]).strip().lower()
            if (meta.get("http-equiv") or "").lower() != "content-type":
                continue
            content = str(meta.get("content") or "")
            if document.declared_encoding is None:
                document.declared_encoding = charset_from_content_type(content) or "utf-8"
            if XHTML_MEDIA_TYPE in content:
                document.proper_xhtml = True
            return


def resolve_encoding(
    document: Document, config: RewriteConfig, charset: Optional[str] = None
) -> EncodingConverter:
    """Decide the output encoding: forced, detected, declared, then UTF-8."""

    if config.force_encoding:
        encoding = document.declared_encoding = config.force_encoding
    elif document.detected_encoding:
        encoding = document.detected_encoding
    elif document.declared_encoding:
        encoding = document.declared_encoding
    elif charset:
        encoding = document.declared_encoding = charset
    else:
        encoding = document.declared_encoding = "utf-8"
    converter = EncodingConverter(encoding)
    document.encoding = converter.encoding
    return converter


def load_document(
    content: Union[str, bytes],
    config: RewriteConfig,
    *,
    content_type: Optional[str] = None,
) -> LoadResult:
    """Parse ``content`` and collect structural diagnostics instead of raising.

    Raises UnsupportedEncoding when the document parsed cleanly but its
    encoding has no codec.
    """

    binary = isinstance(content, (bytes, bytearray))
    sniff = bytes(content).decode("latin-1") if binary else content
    has_prolog = bool(XML_PROLOG_RE.match(sniff))
    dialect = detect_dialect(sniff, config.force_output_mode, has_prolog=has_prolog)
    charset = charset_from_content_type(content_type)

    if dialect == "xhtml" and not has_prolog and charset:
        prolog = f"<?xml version='1.0' encoding='{charset}' ?>\n"
        content = prolog.encode("ascii") + bytes(content) if binary else prolog + content
        sniff = prolog + sniff

    as_xml = dialect == "xhtml" and config.parse_xhtml_as_xml
    if as_xml:
        soup, detected, diagnostics = _parse_xml(content, binary)
    else:
        soup, detected, diagnostics = _parse_html(content, binary, charset)

    document = Document(
        soup=soup,
        dialect=dialect,
        parsed_as_xml=as_xml,
        has_xml_prolog=has_prolog,
        declared_encoding=prolog_encoding(sniff),
        detected_encoding=detected.lower() if detected else None,
        binary=binary,
    )
    if diagnostics:
        logger.debug("Document has %d structural error(s)", len(diagnostics))
        return LoadResult(document, diagnostics)

    root = document.root
    if as_xml and root is not None:
        document.namespace = root.namespace
    _inspect_meta(document, content_type)
    converter = resolve_encoding(document, config, charset)
    logger.debug(
        "Loaded %s document (xml parser: %s, encoding: %s)",
        dialect,
        as_xml,
        document.encoding,
    )
    return LoadResult(document, [], converter)


__all__ = [
    "Document",
    "LoadResult",
    "detect_dialect",
    "load_document",
    "resolve_encoding",
]
