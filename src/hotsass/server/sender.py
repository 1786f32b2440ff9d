"""ASGI response sending — translates hotsass responses to ASGI messages.

Handles both single-body responses and chunked streaming responses.
Headers are always sent as built; the body is dropped for HEAD requests
and for statuses that forbid one.
"""

from collections.abc import AsyncIterator

from hotsass._internal.asgi import Send
from hotsass.http.response import Response, StreamingResponse


def _body_allowed(status: int, method: str) -> bool:
    """Whether a response to *method* with *status* carries a message body."""
    # RFC: HEAD responses, 1xx, 204 and 304 do not include a message body.
    if method == "HEAD":
        return False
    return not (100 <= status < 200 or status in {204, 304})


def _raw_headers(
    content_type: str, headers: tuple[tuple[str, str], ...]
) -> list[tuple[bytes, bytes]]:
    raw: list[tuple[bytes, bytes]] = [(b"content-type", content_type.encode("latin-1"))]
    for name, value in headers:
        raw.append((name.lower().encode("latin-1"), value.encode("latin-1")))
    return raw


async def send_response(response: Response, send: Send, *, method: str = "GET") -> None:
    """Translate a Response into ASGI send() calls.

    For HEAD the content-length still describes the body a GET would get.
    """
    body = response.body_bytes
    if not _body_allowed(response.status, "GET"):
        body = b""
    raw_headers = _raw_headers(response.content_type, response.headers)
    raw_headers.append((b"content-length", str(len(body)).encode("latin-1")))

    await send(
        {
            "type": "http.response.start",
            "status": response.status,
            "headers": raw_headers,
        }
    )
    if not _body_allowed(response.status, method):
        body = b""
    await send({"type": "http.response.body", "body": body})


async def send_streaming_response(
    response: StreamingResponse, send: Send, *, method: str = "GET"
) -> None:
    """Send a streaming response via chunked transfer encoding.

    Sends headers immediately, then each chunk as an ASGI body message
    with ``more_body=True``. Closes with an empty body. When no body is
    allowed the chunks are never consumed.
    """
    raw_headers = _raw_headers(response.content_type, response.headers)

    # No content-length; the server frames the body as chunked
    await send(
        {
            "type": "http.response.start",
            "status": response.status,
            "headers": raw_headers,
        }
    )

    if _body_allowed(response.status, method):
        if isinstance(response.chunks, AsyncIterator):
            async for chunk in response.chunks:
                if chunk:
                    await send({"type": "http.response.body", "body": chunk, "more_body": True})
        else:
            for chunk in response.chunks:
                if chunk:
                    await send({"type": "http.response.body", "body": chunk, "more_body": True})

    await send({"type": "http.response.body", "body": b"", "more_body": False})
