import pytest
from bs4 import BeautifulSoup
from pydantic import ValidationError

from formpop.context import FieldErrors, RequestContext, Response
from formpop.filter import OVERRIDES_ATTRIBUTE, FormPopulationFilter

PAGE = '<form id="contact" action="/contact" method="post"><input name="email"></form>'


def _request(method="POST", attributes=None) -> RequestContext:
    return RequestContext(
        method=method,
        url="http://example.com/contact",
        request_uri="/contact",
        data={"email": "ann@example.com"},
        attributes=attributes or {},
    )


def _value(response: Response):
    return BeautifulSoup(response.content, "html.parser").find("input").get("value")


def test_post_request_is_populated():
    response = Response(PAGE, content_type="text/html; charset=utf-8", output_type="html")
    assert FormPopulationFilter().execute(response, _request(), FieldErrors.of(["email"]))
    assert _value(response) == "ann@example.com"
    assert "error" in response.content


def test_get_request_is_left_alone():
    response = Response(PAGE)
    assert not FormPopulationFilter().execute(response, _request("GET"))
    assert response.content == PAGE


def test_methods_parameter():
    response = Response(PAGE)
    assert FormPopulationFilter({"methods": ["get", "post"]}).execute(response, _request("GET"))
    assert _value(response) == "ann@example.com"


def test_population_can_be_disabled():
    response = Response(PAGE)
    assert not FormPopulationFilter({"populate": False}).execute(response, _request())
    assert response.content == PAGE


def test_populate_true_still_requires_a_listed_method():
    population_filter = FormPopulationFilter({"populate": True, "methods": ["POST"]})
    get_response = Response(PAGE)
    assert not population_filter.execute(get_response, _request("GET"))
    assert get_response.content == PAGE

    post_response = Response(PAGE)
    assert population_filter.execute(post_response, _request())
    assert _value(post_response) == "ann@example.com"


def test_output_types_restrict_processing():
    population_filter = FormPopulationFilter({"output_types": ["html"]})
    json_response = Response('{"a": 1}', output_type="json")
    assert not population_filter.execute(json_response, _request())
    html_response = Response(PAGE, output_type="html")
    assert population_filter.execute(html_response, _request())


def test_immutable_or_empty_responses_are_skipped():
    population_filter = FormPopulationFilter()
    assert not population_filter.execute(Response(PAGE, mutable=False), _request())
    assert not population_filter.execute(Response(""), _request())
    assert not population_filter.execute(Response(None), _request())


def test_request_overrides_select_explicit_forms():
    overrides = {"populate": {"contact": {"email": "override@example.com"}}}
    response = Response(PAGE)
    request = _request("GET", attributes={OVERRIDES_ATTRIBUTE: overrides})
    assert FormPopulationFilter().execute(response, request)
    assert _value(response) == "override@example.com"


def test_explicit_overrides_argument_wins_over_attributes():
    request = _request(attributes={OVERRIDES_ATTRIBUTE: {"populate": False}})
    response = Response(PAGE)
    assert FormPopulationFilter().execute(response, request, overrides={"error_class": "bad"})
    assert _value(response) == "ann@example.com"


def test_invalid_parameters_fail_early():
    with pytest.raises(ValidationError):
        FormPopulationFilter({"force_output_mode": "pdf"})
