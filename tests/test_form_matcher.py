from formpop.context import RequestContext
from formpop.loader import load_document
from formpop.matcher import (
    action_matches,
    base_directory,
    base_href,
    match_forms,
    normalize_path,
    resolve_relative,
    strip_fragment,
)
from formpop.models import RewriteConfig


def _document(html: str):
    return load_document(html, RewriteConfig()).document


def _request(url: str, **kwargs) -> RequestContext:
    path = url.split("://", 1)[-1]
    uri = "/" + path.split("/", 1)[1] if "/" in path else "/"
    return RequestContext(method="POST", url=url, request_uri=uri, **kwargs)


def test_normalize_path_collapses_dot_segments():
    assert normalize_path("/a/./b/../c//d") == "/a/c/d"
    assert normalize_path("/a/b/..") == "/a/"
    assert normalize_path("/a/.") == "/a/"
    assert normalize_path("/a/b/c/../../d") == "/a/d"


def test_strip_fragment():
    assert strip_fragment(" /save#top ") == "/save"


def test_absolute_path_action_matches_request_uri():
    foo = _request("http://example.com/foo")
    bar = _request("http://example.com/bar")
    assert action_matches("/foo", foo, "http://example.com/")
    assert not action_matches("/foo", bar, "http://example.com/")
    assert action_matches("/x/../foo#frag", foo, "http://example.com/")


def test_full_url_and_empty_action_match():
    request = _request("http://example.com/shop/cart")
    assert action_matches("http://example.com/shop/cart", request, "")
    assert action_matches("", request, request.url)
    assert action_matches("#top", request, "http://example.com/shop/cart#cart")
    assert not action_matches("https://elsewhere.example/cart", request, "")


def test_relative_action_resolves_against_request_directory():
    request = _request("http://example.com/app/edit/1")
    base = base_href(_document("<p>no head</p>"), request.url)
    assert base == request.url
    assert base_directory(base) == "http://example.com/app/edit/"
    assert action_matches("1", request, base)
    assert action_matches("../edit/./1", request, base)
    assert not action_matches("2", request, base)


def test_relative_action_keeps_the_origin_intact():
    assert resolve_relative("http://example.com/a/", "../b") == "http://example.com/b"


def test_base_href_overrides_request_directory():
    document = _document(
        '<html><head><base href="http://example.com/other/index.html"></head><body></body></html>'
    )
    href = base_href(document, "http://example.com/app/x")
    assert href == "http://example.com/other/index.html"
    assert base_directory(href) == "http://example.com/other/"


def test_whole_request_mode_selects_forms_by_action():
    document = _document(
        '<form id="a" action="/save"></form>'
        '<form id="b" action="/elsewhere"></form>'
        '<form id="c"></form>'
        '<form id="d" action=""></form>'
    )
    request = _request("http://example.com/save", data={"q": "1"})
    matched = [form["id"] for form, _ in match_forms(document, request=request)]
    assert matched == ["a", "d"]


def test_explicit_mode_selects_forms_by_id():
    document = _document(
        '<form id="login" action="/nowhere"></form><form id="search"></form><form></form>'
    )
    forms = {"search": {"q": "books"}, "missing": {}}
    selected = list(match_forms(document, forms=forms))
    assert [form["id"] for form, _ in selected] == ["search"]
    assert selected[0][1].lookup("q") == "books"


def test_empty_action_follows_a_foreign_base_href():
    document = _document(
        '<html><head><base href="http://other.example/dir/"></head>'
        '<body><form id="f" action=""><input name="q"></form></body></html>'
    )
    request = _request("http://h/page", data={"q": "x"})
    assert not action_matches("", request, base_href(document, request.url))
    assert list(match_forms(document, request=request)) == []


def test_empty_action_matches_a_base_href_naming_the_request():
    document = _document(
        '<html><head><base href="http://h/page"></head>'
        '<body><form id="f" action=""></form></body></html>'
    )
    request = _request("http://h/page")
    assert [form["id"] for form, _ in match_forms(document, request=request)] == ["f"]
