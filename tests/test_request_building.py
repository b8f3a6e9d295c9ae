from __future__ import annotations

import pytest

from httpcall.errors import ConfigurationError
from httpcall.request import FORM_CONTENT_TYPE, HttpMethod, build_request, encode_form


def test_get_without_params_keeps_url() -> None:
    req = build_request("https://api.example.com/users/1", HttpMethod.GET)
    assert req.method is HttpMethod.GET
    assert req.url == "https://api.example.com/users/1"
    assert req.body is None
    assert dict(req.headers) == {}


def test_get_encodes_params_as_query_items() -> None:
    req = build_request("https://api.example.com/search", "GET", params={"q": "a b", "page": "2"})
    assert req.url == "https://api.example.com/search?q=a%20b&page=2"
    assert req.body is None
    assert "Content-Type" not in req.headers


def test_get_appends_to_existing_query() -> None:
    req = build_request("https://api.example.com/search?lang=en", "GET", params={"q": "x&y"})
    assert req.url == "https://api.example.com/search?lang=en&q=x%26y"


def test_post_encodes_form_body_and_content_type() -> None:
    req = build_request(
        "https://api.example.com/login",
        HttpMethod.POST,
        params={"user": "a b", "pass": "x&y"},
    )
    assert req.method is HttpMethod.POST
    assert req.url == "https://api.example.com/login"
    assert req.body == b"user=a%20b&pass=x%26y"
    assert req.headers["Content-Type"] == FORM_CONTENT_TYPE


def test_post_forced_content_type_replaces_caller_value() -> None:
    req = build_request(
        "https://api.example.com/login",
        "POST",
        headers={"content-type": "application/json", "X-Trace": "t-1"},
        params={"user": "ada"},
    )
    assert dict(req.headers) == {"X-Trace": "t-1", "Content-Type": FORM_CONTENT_TYPE}


def test_post_without_params_sends_no_body() -> None:
    req = build_request("https://api.example.com/ping", "POST", headers={"Content-Type": "text/plain"})
    assert req.body is None
    assert req.headers["Content-Type"] == "text/plain"


def test_headers_are_applied_and_descriptor_is_immutable() -> None:
    headers = {"Authorization": "Bearer abc"}
    req = build_request("https://api.example.com/me", "GET", headers=headers)
    headers["Authorization"] = "changed"

    assert req.headers["Authorization"] == "Bearer abc"
    with pytest.raises(TypeError):
        req.headers["X-New"] = "1"  # type: ignore[index]
    with pytest.raises(AttributeError):
        req.url = "https://other.example.com"  # type: ignore[misc]


def test_encode_form_escapes_reserved_characters() -> None:
    assert encode_form({"a=b": "c d/e?"}) == "a%3Db=c%20d%2Fe%3F"
    assert encode_form({}) == ""


@pytest.mark.parametrize(
    "url,code",
    [
        ("", "INVALID_URL"),
        ("not a url", "INVALID_URL"),
        ("ftp://files.example.com/x", "SCHEME_NOT_ALLOWED"),
        ("/relative/path", "SCHEME_NOT_ALLOWED"),
        ("https://", "HOST_REQUIRED"),
        ("https://api.example.com:notaport/x", "INVALID_URL"),
    ],
)
def test_malformed_url_raises_configuration_error(url: str, code: str) -> None:
    with pytest.raises(ConfigurationError) as exc:
        build_request(url, HttpMethod.GET)
    assert exc.value.code == code


def test_unsupported_method_raises_configuration_error() -> None:
    with pytest.raises(ConfigurationError) as exc:
        build_request("https://api.example.com", "DELETE")
    assert exc.value.code == "METHOD_NOT_SUPPORTED"
