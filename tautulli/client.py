import asyncio
import dataclasses
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Optional
from urllib.parse import parse_qsl, urlsplit, urlunsplit

import aiohttp
from yarl import URL

from tautulli.context import RequestContext
from tautulli.errors import ConfigurationError, ContextError, EncodingError, TransportError
from tautulli.notifications import NotificationsAPI
from tautulli.params import encode_parameters, query_field
from tautulli.response import REDACTED, Response, check_response, decode_into, sanitize_url

logger = logging.getLogger(__name__)

DEFAULT_API_PATH = 'api/v2'
USER_AGENT = 'python-tautulli'
OUT_TYPE = 'json'


@dataclass
class CommonParameters:
    """Parameters sent with every command."""
    apikey: str = query_field('apikey')
    cmd: str = query_field('cmd')
    out_type: str = query_field('out_type', default=OUT_TYPE)
    callback: str = query_field('callback', omitempty=True, default='')
    debug: int = query_field('debug', default=0)


@dataclass
class ClientOptions:
    api_path: str = DEFAULT_API_PATH
    # Sends debug=1 and logs every request and response status
    debug: bool = False
    callback: str = ''
    user_agent: str = USER_AGENT
    # Total timeout in seconds for sessions the client creates itself
    timeout: Optional[float] = None


@dataclass(frozen=True)
class Request:
    method: str
    url: str
    headers: Dict[str, str] = field(default_factory=dict)
    context: Optional[RequestContext] = None

    def with_context(self, context: RequestContext) -> 'Request':
        return dataclasses.replace(self, context=context)


def build_command_url(base_url: str, api_path: str, common: CommonParameters, command_params: str = '') -> str:
    """Compose the absolute URL for a command.

    ``base_url`` is the server root and must end with a slash; ``api_path``
    is appended to it. The query holds the common parameters followed by the
    already encoded command parameters, which may not repeat a common
    parameter key. No I/O happens here.
    """
    parts = urlsplit(base_url or '')
    if parts.scheme not in ('http', 'https') or not parts.netloc:
        raise ConfigurationError(f"Base URL must be an absolute http(s) URL, got {base_url!r}")
    if parts.query or parts.fragment:
        raise ConfigurationError(f"Base URL must not carry a query or fragment, got {base_url!r}")
    if not parts.path.endswith('/'):
        raise ConfigurationError(f"Base URL must have a trailing slash, but {base_url!r} does not")

    common_keys = {f.metadata.get('query', f.name) for f in dataclasses.fields(CommonParameters)}
    clashes = sorted(common_keys & {key for key, _ in parse_qsl(command_params, keep_blank_values=True)})
    if clashes:
        raise EncodingError(f"Command parameters may not override common parameters: {', '.join(clashes)}")

    path = parts.path + api_path.strip('/')
    query = '&'.join(p for p in (encode_parameters(common), command_params) if p)
    return urlunsplit((parts.scheme, parts.netloc, path, query, ''))


class TautulliClient(NotificationsAPI):
    """Manages communication with the Tautulli API.

    Configuration is fixed at construction time and nothing per call is kept
    on the instance, so one client can be shared by concurrent callers. When
    no ``session`` is given a new one is created for each call and closed
    with its response; an injected session is never closed by the client.
    """

    def __init__(self, base_url: str, api_key: str, session: Optional[aiohttp.ClientSession] = None,
                 options: Optional[ClientOptions] = None):
        options = options or ClientOptions()
        self._base_url = base_url
        self._api_key = api_key
        self._session = session
        self._options = dataclasses.replace(options)

    @property
    def base_url(self) -> str:
        return self._base_url

    @property
    def api_key(self) -> str:
        return self._api_key

    @property
    def api_path(self) -> str:
        return self._options.api_path

    @property
    def user_agent(self) -> str:
        return self._options.user_agent

    @property
    def debug(self) -> bool:
        return self._options.debug

    @property
    def callback(self) -> str:
        return self._options.callback

    def http_client(self) -> aiohttp.ClientSession:
        """Return a new session configured like the ones this client creates.

        The caller owns the session and must close it.
        """
        timeout = aiohttp.ClientTimeout(total=self._options.timeout)
        headers = {'User-Agent': self.user_agent} if self.user_agent else None
        return aiohttp.ClientSession(timeout=timeout, headers=headers)

    def new_request(self, command: str, params: Any = None) -> Request:
        """Create an API request for ``command``.

        ``params`` (a dataclass instance or mapping) is URL encoded and added
        after the common parameters. Raises EncodingError or ConfigurationError
        before anything is sent.
        """
        if not command:
            raise ConfigurationError("Command name must not be empty")
        encoded = encode_parameters(params)
        common = CommonParameters(
            apikey=self._api_key,
            cmd=command,
            callback=self.callback,
            debug=1 if self.debug else 0,
        )
        url = build_command_url(self._base_url, self.api_path, common, encoded)
        headers = {'User-Agent': self.user_agent} if self.user_agent else {}
        if self.debug:
            logger.debug(f"New request: GET {sanitize_url(url)}")
        return Request('GET', url, headers)

    def _redact(self, text: str) -> str:
        if self._api_key:
            text = text.replace(self._api_key, REDACTED)
        return text

    async def bare_do(self, context: RequestContext, request: Request) -> Response:
        """Send an API request and let the caller handle the response.

        The returned response has not been read; the caller must close it
        (``async with response``). On AcceptedError or ErrorResponse the body
        is buffered and closed before the error is raised.

        ``context`` must not be None. If it is cancelled or times out, its
        error is raised instead of whatever the transport reported.
        """
        if context is None:
            raise ContextError()
        error = context.err()
        if error is not None:
            raise error
        request = request.with_context(context)

        owned = None
        session = self._session
        if session is None:
            session = owned = self.http_client()

        try:
            raw = await context.run(
                session.request(request.method, URL(request.url, encoded=True), headers=request.headers)
            )
        except ContextError:
            if owned is not None:
                await owned.close()
            raise
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            if owned is not None:
                await owned.close()
            error = context.err()
            if error is not None:
                raise error from None
            url = sanitize_url(request.url)
            detail = self._redact(str(e) or type(e).__name__)
            logger.error(f"Tautulli API request failed: {request.method} {url}: {detail}")
            raise TransportError(request.method, url, detail, type(e)) from None

        response = Response(raw, session=owned)
        if self.debug:
            logger.debug(f"HTTP response: {response.status} for {response.method} {response.url}")
        try:
            await check_response(response)
        except Exception:
            await response.close()
            raise
        return response

    async def do(self, context: RequestContext, request: Request, into: Any = None) -> Response:
        """Send an API request and decode the body into ``into``.

        The decoded value is stored on ``Response.data``. If ``into`` has a
        ``write`` method the raw body is written to it instead. The body is
        closed before returning, whatever the outcome.
        """
        response = await self.bare_do(context, request)
        async with response:
            await decode_into(response, into)
        return response

    async def command(self, context: RequestContext, cmd: str, params: Any = None, into: Any = None) -> Response:
        """Build, send and decode a single Tautulli command."""
        request = self.new_request(cmd, params)
        return await self.do(context, request, into)
