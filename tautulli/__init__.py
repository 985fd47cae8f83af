"""Asynchronous client for the Tautulli API."""

from tautulli.client import (
    DEFAULT_API_PATH,
    USER_AGENT,
    ClientOptions,
    CommonParameters,
    Request,
    TautulliClient,
    build_command_url,
)
from tautulli.config import Settings
from tautulli.context import RequestContext
from tautulli.errors import (
    AcceptedError,
    CommandError,
    ConfigurationError,
    ContextCanceledError,
    ContextError,
    DeadlineExceededError,
    DecodeError,
    EncodingError,
    ErrorResponse,
    FieldError,
    TautulliError,
    TransportError,
)
from tautulli.notifications import APIResponse, NotifyParameters
from tautulli.params import encode_parameters, query_field
from tautulli.response import Response, check_response, decode_into, sanitize_url

__version__ = "0.1.0"
