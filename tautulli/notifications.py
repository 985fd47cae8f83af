import logging
from dataclasses import dataclass
from typing import Any, Optional

from tautulli.errors import CommandError
from tautulli.params import query_field

logger = logging.getLogger(__name__)

COMMAND_NOTIFY = 'notify'


@dataclass
class APIResponse:
    """The ``{"response": {"result", "message", "data"}}`` envelope Tautulli wraps replies in."""
    result: Optional[str] = None
    message: Optional[str] = None
    data: Any = None

    @classmethod
    def from_api_response(cls, payload: Any) -> 'APIResponse':
        envelope = payload.get('response') if isinstance(payload, dict) else None
        if not isinstance(envelope, dict):
            # Not every endpoint (or proxy in front of one) uses the envelope
            return cls(data=payload)
        return cls(
            result=envelope.get('result'),
            message=envelope.get('message'),
            data=envelope.get('data'),
        )

    @property
    def ok(self) -> bool:
        return self.result != 'error'


@dataclass
class NotifyParameters:
    """Parameters for sending a notification through a notification agent."""
    notifier_id: int = query_field('notifier_id')  # The ID number of the notification agent
    subject: str = query_field('subject', default='')
    body: str = query_field('body', default='')
    headers: str = query_field('headers', omitempty=True, default='')  # JSON headers for webhook agents
    script_args: str = query_field('script_args', omitempty=True, default='')  # Arguments for script agents


class NotificationsAPI:
    """Notification related commands of the Tautulli API.

    Mixed into TautulliClient, which provides ``command()``.
    """

    async def notify(self, context, params: NotifyParameters):
        """Send a notification using the Tautulli API."""
        logger.info(f"Sending notification through notifier {params.notifier_id}")
        response = await self.command(context, COMMAND_NOTIFY, params, into=APIResponse)
        result: Optional[APIResponse] = response.data
        if result is not None and not result.ok:
            logger.error(f"Tautulli API error: {result.message}")
            raise CommandError(COMMAND_NOTIFY, result.message)
        return response

