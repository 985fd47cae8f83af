#!/usr/bin/env python3
"""
Tautulli notify - Entry Point Script
Sends a notification through a Tautulli notification agent using the
settings from the environment (or a .env file).
"""

import argparse
import asyncio
import json
import logging
import sys

from tautulli.config import Settings
from tautulli.context import RequestContext
from tautulli.errors import (
    AcceptedError,
    CommandError,
    ConfigurationError,
    ContextError,
    DecodeError,
    EncodingError,
    ErrorResponse,
    TransportError,
)
from tautulli.notifications import NotifyParameters

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_CONFIG = 1
EXIT_TRANSPORT = 2
EXIT_CONTEXT = 3
EXIT_REJECTED = 4
EXIT_ACCEPTED = 5


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Send a notification through Tautulli")
    subparsers = parser.add_subparsers(dest='command', required=True)

    notify = subparsers.add_parser('notify', help="Send a notification through a notification agent")
    notify.add_argument('--notifier-id', type=int, required=True, help="ID of the notification agent")
    notify.add_argument('--subject', required=True)
    notify.add_argument('--body', required=True)
    notify.add_argument('--headers', default='', help="JSON headers for webhook agents")
    notify.add_argument('--script-args', default='', help="Arguments for script agents")
    notify.add_argument('--timeout', type=float, default=None, help="Give up after this many seconds")
    return parser.parse_args(argv)


async def send_notification(settings: Settings, args: argparse.Namespace):
    client = settings.create_client()
    params = NotifyParameters(
        notifier_id=args.notifier_id,
        subject=args.subject,
        body=args.body,
        headers=args.headers,
        script_args=args.script_args,
    )
    return await client.notify(RequestContext(timeout=args.timeout), params)


def main(argv=None) -> int:
    """Main entry point, returns the process exit code."""
    args = parse_args(argv)

    try:
        settings = Settings.from_env()
    except ConfigurationError as e:
        logging.basicConfig(level=logging.INFO, format='%(asctime)s - %(name)s - %(levelname)s - %(message)s')
        logger.error(f"Configuration error: {e}")
        return EXIT_CONFIG

    # Configure logging
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )

    try:
        response = asyncio.run(send_notification(settings, args))
    except (ConfigurationError, EncodingError) as e:
        logger.error(f"Invalid request: {e}")
        return EXIT_CONFIG
    except ContextError as e:
        logger.error(f"Request did not complete: {e}")
        return EXIT_CONTEXT
    except TransportError as e:
        logger.error(f"Could not reach Tautulli: {e}")
        return EXIT_TRANSPORT
    except AcceptedError as e:
        logger.warning(str(e))
        return EXIT_ACCEPTED
    except (ErrorResponse, CommandError, DecodeError) as e:
        logger.error(f"Tautulli rejected the request: {e}")
        return EXIT_REJECTED

    result = response.data
    logger.info(f"Notification sent ({response.status})")
    if result is not None:
        print(json.dumps({'result': result.result, 'message': result.message, 'data': result.data}, indent=2))
    return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
