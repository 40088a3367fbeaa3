from bs4 import BeautifulSoup

from formpop.context import FieldErrors, RequestContext
from formpop.engine import FormPopulator
from formpop.models import RewriteConfig

DOCTYPE = (
    '<!DOCTYPE html PUBLIC "-//W3C//DTD XHTML 1.0 Strict//EN" '
    '"http://www.w3.org/TR/xhtml1/DTD/xhtml1-strict.dtd">'
)

SIGNUP_PAGE = (
    '<?xml version="1.0" encoding="utf-8"?>\n'
    + DOCTYPE
    + """
<html xmlns="http://www.w3.org/1999/xhtml">
<head>
<title>Signup</title>
<script type="text/javascript">//<![CDATA[
if (a < b && c) { go(); }
//]]></script>
</head>
<body>
<form action="signup" method="post">
<p><label for="email">Email</label><input type="text" id="email" name="email" value="" /></p>
<p><input type="checkbox" name="news" value="yes" checked="checked" /></p>
<p><textarea name="about" cols="20" rows="3">Tell us</textarea></p>
</form>
</body>
</html>
"""
)

REQUEST = RequestContext(
    method="POST",
    url="http://example.com/account/signup",
    request_uri="/account/signup",
    data={"email": "ann@example.com", "about": "I like <b>bold</b> & more"},
)


def _populate(content, content_type=None, errors=(), **options):
    populator = FormPopulator(RewriteConfig(**options))
    return populator.populate(
        content,
        request=REQUEST,
        errors=FieldErrors.of(errors),
        content_type=content_type,
    )


def _xml(content) -> BeautifulSoup:
    return BeautifulSoup(content, "xml")


def test_xhtml_form_is_populated():
    out = _populate(SIGNUP_PAGE, errors=["email"])
    assert out.startswith('<?xml version="1.0" encoding="utf-8"?>')

    soup = _xml(out)
    email = soup.find("input", {"name": "email"})
    assert email["value"] == "ann@example.com"
    assert email["class"] == "error"
    assert soup.find("label")["class"] == "error"
    assert not soup.find("input", {"name": "news"}).has_attr("checked")
    assert soup.find("textarea").get_text() == "I like <b>bold</b> & more"


def test_xhtml_script_keeps_unescaped_content():
    out = _populate(SIGNUP_PAGE)
    assert "if (a < b && c) { go(); }" in out
    assert '<script type="text/javascript"><!--//--><![CDATA[//><!--' in out
    assert "//--><!]]></script>" in out


def test_xhtml_second_pass_is_identical():
    first = _populate(SIGNUP_PAGE, errors=["email"])
    assert _populate(first, errors=["email"]) == first


def test_prolog_added_by_serializer_is_removed():
    content = DOCTYPE + '<html xmlns="http://www.w3.org/1999/xhtml"><body><form action=""><p><input name="email" /></p></form></body></html>'
    out = _populate(content)
    assert out.startswith("<!DOCTYPE html")
    assert 'value="ann@example.com"' in out


def test_prolog_can_be_kept():
    content = DOCTYPE + '<html xmlns="http://www.w3.org/1999/xhtml"><body></body></html>'
    out = _populate(content, remove_auto_xml_prolog=False)
    assert out.startswith('<?xml version="1.0"')


def test_proper_xhtml_textarea_uses_cdata():
    out = _populate(SIGNUP_PAGE, content_type="application/xhtml+xml; charset=utf-8")
    assert "<![CDATA[I like <b>bold</b> & more]]>" in out
    # proper XHTML keeps bare CDATA sections in scripts
    assert "<script type=\"text/javascript\"><![CDATA[" in out


def test_xhtml_with_html_parser_gets_cdata_fences():
    content = (
        DOCTYPE
        + '<html xmlns="http://www.w3.org/1999/xhtml"><head><title>t</title>'
        + '<script type="text/javascript"><![CDATA[\nvar ok = 1 < 2;\n]]></script>'
        + '<style type="text/css"><![CDATA[\np > a { color: red; }\n]]></style>'
        + '</head><body><form action=""><p><input type="text" name="email" /></p></form></body></html>'
    )
    out = _populate(content, parse_xhtml_as_xml=False)
    assert '<script type="text/javascript"><!--//--><![CDATA[//><!--\nvar ok = 1 < 2;\n//--><!]]></script>' in out
    assert '<style type="text/css"><!--/*--><![CDATA[/*><!--*/\np > a { color: red; }\n/*]]>*/--></style>' in out
    assert 'value="ann@example.com"' in out
    assert _populate(out, parse_xhtml_as_xml=False) == out


def test_cdata_fix_can_be_disabled():
    content = (
        DOCTYPE
        + '<html xmlns="http://www.w3.org/1999/xhtml"><head><title>t</title>'
        + '<script type="text/javascript"><![CDATA[x < y]]></script></head><body></body></html>'
    )
    out = _populate(content, parse_xhtml_as_xml=False, cdata_fix=False)
    assert "<script type=\"text/javascript\"><![CDATA[x < y]]></script>" in out


def test_forced_html_mode_ignores_xhtml_doctype():
    content = DOCTYPE + '<html><body><form action=""><input name="email"></form></body></html>'
    out = _populate(content, force_output_mode="html")
    assert not out.startswith("<?xml")
    assert BeautifulSoup(out, "html.parser").find("input")["value"] == "ann@example.com"


def test_prefixed_xhtml_elements_are_populated():
    content = (
        '<?xml version="1.0" encoding="utf-8"?>\n'
        '<h:html xmlns:h="http://www.w3.org/1999/xhtml" xmlns:x="urn:other"><h:body>'
        '<h:form action=""><h:input name="email" /><x:input name="email" /></h:form>'
        "</h:body></h:html>"
    )
    out = _populate(content)
    assert '<h:input name="email" value="ann@example.com"/>' in out
    assert '<x:input name="email"/>' in out


def test_latin1_xhtml_bytes_round_trip():
    content = (
        DOCTYPE
        + '<html xmlns="http://www.w3.org/1999/xhtml"><head><title>Café</title></head>'
        + '<body><form action=""><p><input name="email" /></p></form></body></html>'
    ).encode("latin-1")
    out = _populate(content, content_type="text/html; charset=iso-8859-1")
    assert isinstance(out, bytes)
    assert "<title>Café</title>".encode("latin-1") in out
    assert out.startswith(b"<!DOCTYPE html")
