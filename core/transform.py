"""Body encoding for outbound requests and decoding of upstream responses."""

import json
from typing import Any
from urllib.parse import parse_qsl, urlencode

import httpx

from core.exceptions import BodyParseFailure

JSON_TYPE = "application/json"
FORM_TYPE = "application/x-www-form-urlencoded"

JSON_HINT = "Check for missing closing braces, trailing commas or unquoted keys."


def media_type(content_type: str | None) -> str:
    """Return the bare lower-cased media type of a Content-Type value."""
    if not content_type:
        return ""
    return content_type.split(";", 1)[0].strip().lower()


def _is_json(media: str) -> bool:
    return media == JSON_TYPE or media.endswith("+json")


class BodyEncoder:
    """Encode relay bodies according to their declared content type."""

    def encode(self, body: Any, content_type: str | None) -> tuple[bytes | None, str | None]:
        """Return (content, content_type) for the outbound request.

        ``body`` is raw bytes from a path-style call or a decoded JSON value
        from a wrapper-style call. A non-empty body without a content type is
        framed as JSON.
        """
        if body is None or body == b"" or body == "":
            return None, content_type

        media = media_type(content_type)

        if media == FORM_TYPE:
            return self._encode_form(body), content_type

        if not media or _is_json(media):
            return self._encode_json(body), content_type or JSON_TYPE

        if isinstance(body, bytes):
            return body, content_type
        if isinstance(body, str):
            return body.encode("utf-8"), content_type

        # Structured value declared as text/xml/binary: send its JSON text
        return json.dumps(body).encode("utf-8"), content_type

    def parse_json_text(self, text: str) -> Any:
        """Decode a JSON document, raising BodyParseFailure with a hint."""
        try:
            return json.loads(text)
        except json.JSONDecodeError as e:
            raise BodyParseFailure(
                f"Invalid JSON: {e.msg} (line {e.lineno}, column {e.colno})",
                hint=JSON_HINT,
                received_body=text,
            ) from e

    def _encode_json(self, body: Any) -> bytes:
        if isinstance(body, (bytes, str)):
            text = body.decode("utf-8", errors="replace") if isinstance(body, bytes) else body
            # Validate only; the caller's bytes are forwarded unchanged
            self.parse_json_text(text)
            return body if isinstance(body, bytes) else body.encode("utf-8")
        return json.dumps(body).encode("utf-8")

    def _encode_form(self, body: Any) -> bytes:
        if isinstance(body, dict):
            return urlencode(
                {key: "" if value is None else value for key, value in body.items()},
                doseq=True,
            ).encode("ascii")
        if isinstance(body, (bytes, str)):
            text = body.decode("utf-8", errors="replace") if isinstance(body, bytes) else body
            return urlencode(parse_qsl(text, keep_blank_values=True)).encode("ascii")
        raise BodyParseFailure(
            "Form bodies must be a key/value object or an encoded string",
            hint="Send form fields as a flat JSON object, e.g. {\"name\": \"value\"}.",
            received_body=json.dumps(body),
        )


def _reject_constant(token: str) -> Any:
    raise ValueError(f"{token} is not representable in a JSON response")


def decode_response_body(response: httpx.Response) -> Any:
    """Parse the upstream body as JSON when possible, else return text.

    NaN and Infinity tokens keep the body as text; they cannot be re-encoded
    in the JSON envelope.
    """
    if not response.content:
        return None
    text = response.text
    try:
        return json.loads(text, parse_constant=_reject_constant)
    except ValueError:
        return text
