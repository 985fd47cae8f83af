import dataclasses
import inspect
import json
import logging
from typing import Any, AsyncIterator, Optional
from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit

import aiohttp

from tautulli.errors import AcceptedError, DecodeError, ErrorResponse, FieldError

logger = logging.getLogger(__name__)

# Query parameters whose values never appear in errors or logs
SECRET_PARAMETERS = ('client_secret', 'apikey')
REDACTED = 'REDACTED'

CHUNK_SIZE = 64 * 1024


def sanitize_url(url: Any) -> str:
    """Redact secret query parameters from a URL which may be exposed to the user."""
    if url is None:
        return ''
    url = str(url)
    parts = urlsplit(url)
    pairs = parse_qsl(parts.query, keep_blank_values=True)
    if not any(key in SECRET_PARAMETERS and value for key, value in pairs):
        return url
    pairs = [
        (key, REDACTED if key in SECRET_PARAMETERS and value else value)
        for key, value in pairs
    ]
    return urlunsplit(parts._replace(query=urlencode(pairs)))


class Response:
    """A Tautulli API response.

    Wraps the ``aiohttp.ClientResponse`` returned for a request. Once the body
    has been read it is buffered, so it stays readable after ``close()``.
    Closing also closes the session when it was created for this call only.
    """

    def __init__(self, raw: aiohttp.ClientResponse, session: Optional[aiohttp.ClientSession] = None):
        self.raw = raw
        self.data: Any = None
        self._session = session
        self._body: Optional[bytes] = None
        self._closed = False

    @property
    def status(self) -> int:
        return self.raw.status

    @property
    def headers(self):
        return self.raw.headers

    @property
    def method(self) -> str:
        return self.raw.method

    @property
    def url(self) -> str:
        return sanitize_url(self.raw.url)

    @property
    def content(self) -> bytes:
        """The buffered body, empty if it has not been read yet."""
        return self._body or b''

    @property
    def closed(self) -> bool:
        return self._closed

    async def read(self) -> bytes:
        if self._body is None:
            self._body = await self.raw.read()
        return self._body

    async def text(self, encoding: str = 'utf-8') -> str:
        return (await self.read()).decode(encoding, errors='replace')

    async def json(self) -> Any:
        data = await self.read()
        return json.loads(data) if data.strip() else None

    async def iter_chunks(self, size: int = CHUNK_SIZE) -> AsyncIterator[bytes]:
        if self._body is not None:
            if self._body:
                yield self._body
            return
        async for chunk in self.raw.content.iter_chunked(size):
            yield chunk

    async def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        self.raw.release()
        if self._session is not None:
            await self._session.close()
            self._session = None

    async def __aenter__(self) -> 'Response':
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    def __repr__(self):
        return f"<Response {self.method} {self.url} [{self.status}]>"


def _parse_error_body(data: bytes) -> Optional[FieldError]:
    if not data.strip():
        return None
    text = data.decode('utf-8', errors='replace').strip()
    try:
        payload = json.loads(data)
    except ValueError:
        return FieldError(message=text)

    if isinstance(payload, str):
        return FieldError(message=payload)
    if isinstance(payload, dict):
        envelope = payload.get('response')
        if isinstance(envelope, dict) and 'message' in envelope:
            return FieldError(message=str(envelope.get('message') or ''))
        return FieldError(
            resource=str(payload.get('resource') or ''),
            field=str(payload.get('field') or ''),
            code=str(payload.get('code') or ''),
            message=str(payload.get('message') or ''),
        )
    return FieldError(message=text)


async def check_response(response: Response) -> None:
    """Check the API response for errors, and raise them if present.

    A response is an error if its status code is outside the 200 range or
    equal to 202 Accepted. For 202 the body is read into the AcceptedError.
    Other error bodies are decoded into a FieldError when possible, otherwise
    the whole body becomes the message; the buffered body stays readable on
    the response either way.
    """
    status = response.status
    if status == 202:
        raise AcceptedError(await response.read())
    if 200 <= status <= 299:
        return

    data = await response.read()
    error = ErrorResponse(
        response,
        method=response.method,
        url=response.url,
        status=status,
        error=_parse_error_body(data),
    )
    logger.warning(f"Tautulli API HTTP error: {error}")
    raise error


def _convert(payload: Any, into: Any) -> Any:
    if hasattr(into, 'from_api_response'):
        return into.from_api_response(payload)
    if dataclasses.is_dataclass(into) and isinstance(into, type):
        if not isinstance(payload, dict):
            raise TypeError(f"expected a JSON object for {into.__name__}, got {type(payload).__name__}")
        names = {f.name for f in dataclasses.fields(into) if f.init}
        return into(**{k: v for k, v in payload.items() if k in names})
    if into is object or into is Any:
        return payload
    if isinstance(into, type):
        if not isinstance(payload, into):
            raise TypeError(f"expected {into.__name__}, got {type(payload).__name__}")
        return payload
    raise TypeError(f"unsupported decode target: {into!r}")


async def decode_into(response: Response, into: Any) -> Any:
    """Decode the response body according to ``into``.

    ``None`` leaves the body alone. An object with a ``write`` method receives
    the raw bytes. Anything else is a JSON target: a dataclass type, a type
    with ``from_api_response``, or ``dict``/``list``/``object``. An empty body
    is not an error and decodes to None.
    """
    if into is None:
        return None

    if not isinstance(into, type) and hasattr(into, 'write'):
        async for chunk in response.iter_chunks():
            result = into.write(chunk)
            if inspect.isawaitable(result):
                await result
        return None

    data = await response.read()
    if not data.strip():
        return None
    try:
        payload = json.loads(data)
    except ValueError as e:
        raise DecodeError(f"Invalid JSON in response from {response.url}: {e}", e) from e
    try:
        value = _convert(payload, into)
    except (TypeError, ValueError, KeyError) as e:
        raise DecodeError(f"Could not decode response from {response.url}: {e}", e) from e

    response.data = value
    return value
