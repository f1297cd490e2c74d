import httpx
import pytest

from core.exceptions import BodyParseFailure
from core.headers import HeaderBuilder
from core.transform import BodyEncoder, decode_response_body, media_type


@pytest.fixture
def encoder():
    return BodyEncoder()


def test_media_type():
    assert media_type("Application/JSON; charset=utf-8") == "application/json"
    assert media_type(None) == ""


def test_empty_body(encoder):
    assert encoder.encode(None, "application/json") == (None, "application/json")
    assert encoder.encode(b"", None) == (None, None)


def test_structured_json(encoder):
    content, content_type = encoder.encode({"name": "X"}, "application/json")
    assert content == b'{"name": "X"}'
    assert content_type == "application/json"


def test_raw_json_validated_and_passed_through(encoder):
    raw = b'{"b": 1,   "a": 2}'
    assert encoder.encode(raw, "application/vnd.api+json") == (raw, "application/vnd.api+json")

    with pytest.raises(BodyParseFailure) as exc_info:
        encoder.encode(b'{"b": 1', "application/json")
    assert exc_info.value.received_body == '{"b": 1'


def test_missing_content_type_defaults_to_json(encoder):
    assert encoder.encode({"a": 1}, None) == (b'{"a": 1}', "application/json")
    assert encoder.encode('{"a": 1}', None) == (b'{"a": 1}', "application/json")


def test_form_encoding(encoder):
    form = "application/x-www-form-urlencoded"
    assert encoder.encode({"a": "1", "b": "x y", "c": None}, form) == (b"a=1&b=x+y&c=", form)
    assert encoder.encode(b"a=1&b=x%20y", form) == (b"a=1&b=x+y", form)

    with pytest.raises(BodyParseFailure):
        encoder.encode([1, 2], form)


def test_text_and_binary_passthrough(encoder):
    assert encoder.encode("<a/>", "text/xml") == (b"<a/>", "text/xml")
    assert encoder.encode("plain", "text/plain; charset=utf-8") == (b"plain", "text/plain; charset=utf-8")
    assert encoder.encode(b"\x00\x01", "application/octet-stream") == (
        b"\x00\x01",
        "application/octet-stream",
    )


def test_decode_response_body():
    assert decode_response_body(httpx.Response(200, json={"id": 2})) == {"id": 2}
    assert decode_response_body(httpx.Response(200, text="<html/>")) == "<html/>"
    assert decode_response_body(httpx.Response(204)) is None


def test_outbound_headers_override_defaults_except_denied():
    builder = HeaderBuilder("Relay/1.0")

    headers = builder.build_outbound_headers(
        {
            "Accept": "application/json",
            "Accept-Encoding": "identity",
            "Host": "evil.example",
            "Content-Length": "999",
            "User-Agent": "curl/8",
            "X-Api-Key": "k",
        }
    )

    assert headers["accept"] == "application/json"
    assert headers["accept-encoding"] == "gzip, deflate, br, zstd"
    assert headers["user-agent"] == "Relay/1.0"
    assert headers["x-api-key"] == "k"
    assert "host" not in headers
    assert "content-length" not in headers


def test_strip_response_headers():
    builder = HeaderBuilder("Relay/1.0")
    upstream = httpx.Headers(
        {
            "Content-Type": "application/json",
            "Content-Encoding": "gzip",
            "Transfer-Encoding": "chunked",
            "Connection": "keep-alive",
        }
    )

    assert builder.strip_response_headers(upstream) == {"content-type": "application/json"}


@pytest.mark.parametrize("text", ["NaN", "Infinity", '{"ratio": -Infinity}'])
def test_non_finite_json_tokens_stay_text(text):
    assert decode_response_body(httpx.Response(200, text=text)) == text
