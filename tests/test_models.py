"""Tests for HTTP message models."""

from redom.models import HttpResponse, RenderResult


def test_header_lookup_is_case_insensitive_first_value():
    response = HttpResponse(headers=(("set-cookie", "a=1"), ("Set-Cookie", "b=2")))

    assert response.header("SET-COOKIE") == "a=1"
    assert response.header("Content-Type") is None


def test_redirect_range():
    assert HttpResponse(status_code=300).is_redirect
    assert HttpResponse(status_code=308).is_redirect
    assert not HttpResponse(status_code=200).is_redirect
    assert not HttpResponse(status_code=400).is_redirect


def test_passthrough_keeps_everything():
    response = HttpResponse(
        status_code=418,
        reason_phrase="I'm a teapot",
        headers=(("X-A", "1"), ("X-A", "2")),
        body=b"\x00\xff",
        http_version="HTTP/1.0",
    )

    result = RenderResult.passthrough("https://example.com/tea", response)

    assert result.body == b"\x00\xff"
    assert result.status_code == 418
    assert result.reason_phrase == "I'm a teapot"
    assert result.headers == (("X-A", "1"), ("X-A", "2"))
    assert result.http_version == "HTTP/1.0"
    assert result.final_url == "https://example.com/tea"
    assert not result.rendered


def test_text_replaces_invalid_utf8():
    result = RenderResult(body=b"caf\xc3\xa9 \xff", status_code=200, reason_phrase="OK", headers=(), final_url="u")

    assert result.text == "café �"


def test_headers_are_copied_from_caller_sequence():
    headers = [["Content-Type", "text/html"], ["Set-Cookie", "a=1"]]
    response = HttpResponse(headers=headers)
    result = RenderResult(body=b"", status_code=200, reason_phrase="OK", headers=headers, final_url="u")

    headers.append(["X-Late", "1"])
    headers[0][1] = "text/plain"

    expected = (("Content-Type", "text/html"), ("Set-Cookie", "a=1"))
    assert response.headers == expected
    assert result.headers == expected
    assert hash(result) == hash(RenderResult(b"", 200, "OK", expected, "u"))
