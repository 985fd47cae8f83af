import logging
import os
from dataclasses import dataclass
from typing import Optional

from dotenv import load_dotenv

from tautulli.client import DEFAULT_API_PATH, ClientOptions, TautulliClient
from tautulli.errors import ConfigurationError

logger = logging.getLogger(__name__)

# Required environment variables
required_vars = {
    'TAUTULLI_URL': 'Tautulli server URL, with a trailing slash',
    'TAUTULLI_API_KEY': 'Tautulli API key',
}


def _env_flag(name: str) -> bool:
    return os.getenv(name, '').strip().lower() in ('1', 'true', 'yes', 'on')


@dataclass
class Settings:
    url: str
    api_key: str
    api_path: str = DEFAULT_API_PATH
    debug: bool = False
    callback: str = ''
    timeout: Optional[float] = None
    log_level: str = 'INFO'

    @classmethod
    def from_env(cls, env_file: Optional[str] = None) -> 'Settings':
        """Read settings from the environment, loading a .env file first."""
        load_dotenv(env_file)

        missing_vars = [f"- {var} ({description})" for var, description in required_vars.items() if not os.getenv(var)]
        if missing_vars:
            logger.error("Missing required environment variables:")
            for var in missing_vars:
                logger.error(var)
            raise ConfigurationError(f"Missing required environment variables: {', '.join(required_vars)}")

        timeout = os.getenv('TAUTULLI_TIMEOUT')
        try:
            timeout = float(timeout) if timeout else None
        except ValueError as e:
            raise ConfigurationError(f"TAUTULLI_TIMEOUT must be a number, got {timeout!r}") from e

        return cls(
            url=os.getenv('TAUTULLI_URL'),
            api_key=os.getenv('TAUTULLI_API_KEY'),
            api_path=os.getenv('TAUTULLI_API_PATH', DEFAULT_API_PATH),
            debug=_env_flag('TAUTULLI_DEBUG'),
            callback=os.getenv('TAUTULLI_CALLBACK', ''),
            timeout=timeout,
            log_level=os.getenv('LOG_LEVEL', 'INFO').upper(),
        )

    def client_options(self) -> ClientOptions:
        return ClientOptions(
            api_path=self.api_path,
            debug=self.debug,
            callback=self.callback,
            timeout=self.timeout,
        )

    def create_client(self, session=None) -> TautulliClient:
        return TautulliClient(self.url, self.api_key, session=session, options=self.client_options())
