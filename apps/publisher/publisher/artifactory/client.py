"""Artifactory deploy client.

One upload is one ``PUT <url>`` with HTTP Basic auth and the binary as
the raw request body:

    PUT https://art.example.com/artifactory/tools/linux/amd64/tool
    Authorization: Basic <username:secret>
    Content-Length: <file size>

Response handling:
  2xx       - body decoded into ArtifactoryResponse (DecodeError if not,
              including a body that doesn't match its Content-Encoding)
  non-2xx   - ApiError with the parsed ``{"errors": [...]}`` list, or an
              empty list when the body is empty or has another shape
  no answer - TransportError, or CancellationError when the run was
              cancelled while the request was in flight

The response is always closed before returning.

Docs: https://www.jfrog.com/confluence/display/RTF/Artifactory+REST+API#ArtifactoryRESTAPI-DeployArtifact
"""

import asyncio
import logging
import os
import stat
from collections.abc import AsyncIterator
from typing import BinaryIO, Optional

import httpx
from pydantic import ValidationError

from publisher.artifactory.types import ArtifactoryResponse, ErrorResponse
from publisher.core.context import PublishContext
from publisher.core.errors import (
    ApiError,
    CancellationError,
    DecodeError,
    InvalidSourceError,
    TransportError,
)

logger = logging.getLogger(__name__)

CHUNK_SIZE = 64 * 1024


async def upload_binary(
    ctx: PublishContext,
    client: httpx.AsyncClient,
    url: str,
    username: str,
    secret: str,
    source: BinaryIO,
    size: Optional[int] = None,
) -> ArtifactoryResponse:
    """Upload the contents of `source` to `url`.

    `source` is rewound first, so one open handle can be uploaded to
    several instances in turn. `size` defaults to the file size on disk.
    """
    info = os.fstat(source.fileno())
    if stat.S_ISDIR(info.st_mode):
        raise InvalidSourceError("the asset to upload can't be a directory")
    if size is None:
        size = info.st_size

    source.seek(0)
    try:
        request = client.build_request(
            "PUT",
            url,
            content=_iter_file(source),
            headers={"Content-Length": str(size)},
        )
    except httpx.InvalidURL as exc:
        raise TransportError(f"PUT {url}: {exc}") from exc
    # httpx.BasicAuth adds the Authorization header when the request is sent.
    auth = httpx.BasicAuth(username, secret)

    try:
        response = await ctx.guard(client.send(request, auth=auth, stream=True))
    except httpx.RequestError as exc:
        # A failure racing with cancellation is reported as the cancellation.
        if ctx.cancelled:
            raise CancellationError(ctx.cancel_reason) from exc
        raise TransportError(f"PUT {url}: {exc!r}") from exc

    try:
        body = await ctx.guard(response.aread())
    except httpx.DecodingError as exc:
        # Content-Encoding doesn't match the body
        raise DecodeError(
            f"PUT {url}: cannot decode response body: {exc}", response.status_code
        ) from exc
    except httpx.RequestError as exc:
        if ctx.cancelled:
            raise CancellationError(ctx.cancel_reason) from exc
        raise TransportError(f"PUT {url}: reading response: {exc!r}") from exc
    finally:
        await response.aclose()

    check_response(response, body)

    try:
        return ArtifactoryResponse.model_validate_json(body)
    except ValidationError as exc:
        raise DecodeError(
            f"PUT {url}: cannot decode response: {exc}", response.status_code
        ) from exc


def check_response(response: httpx.Response, body: bytes) -> None:
    """Raise ApiError unless `response` has a 2xx status.

    Error bodies are expected to be empty or ``{"errors": [...]}``. Any
    other body still produces an ApiError, just without details.
    """
    if 200 <= response.status_code <= 299:
        return

    errors = []
    if body:
        try:
            errors = ErrorResponse.model_validate_json(body).errors
        except ValidationError:
            logger.debug(
                "Unstructured error body from %s (HTTP %d): %r",
                response.request.url, response.status_code, body[:200],
            )

    raise ApiError(
        method=response.request.method,
        url=str(response.request.url),
        status_code=response.status_code,
        errors=errors,
    )


async def _iter_file(source: BinaryIO) -> AsyncIterator[bytes]:
    # File reads run in a worker thread so a slow disk doesn't stall the loop.
    while True:
        chunk = await asyncio.to_thread(source.read, CHUNK_SIZE)
        if not chunk:
            return
        yield chunk
