"""Settings loader with environment variable and Docker secrets integration."""
from __future__ import annotations
import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from avidbase.core.identity.client import resolve_base_url

logger = logging.getLogger(__name__)

DEMO_ACCOUNT_ID = "demo-account"
DEMO_API_KEY = "demo-api-key"


def _load_secret_from_file(secret_name: str, env_var: str | None = None) -> str | None:
    """
    Load secret from /run/secrets (Docker secrets pattern).

    Priority:
    1. /run/secrets/{secret_name} (Docker secrets mount)
    2. Environment variable (fallback)

    Args:
        secret_name: Name of the secret file in /run/secrets
        env_var: Optional environment variable name to check as fallback

    Returns:
        Secret value or None if not found
    """
    secret_file = Path("/run/secrets") / secret_name

    if secret_file.exists() and secret_file.is_file():
        try:
            secret_value = secret_file.read_text().strip()
            if secret_value:
                logger.info("Loaded %s from /run/secrets", secret_name)
                return secret_value
        except OSError as e:
            logger.warning("Failed to read /run/secrets/%s: %s", secret_name, e)

    if env_var:
        secret_value = os.getenv(env_var)
        if secret_value:
            logger.info("Loaded %s from environment (fallback)", env_var)
            return secret_value

    return None


@dataclass
class AvidbaseConfig:
    """Client configuration container."""
    account_id: str
    api_key: str
    environment: str = "production"
    base_url: str = ""
    demo_mode: bool = False

    @property
    def resolved_base_url(self) -> str:
        """API root for the configured environment, or the explicit base_url.

        Raises:
            ValueError: If the environment name is unknown
        """
        return resolve_base_url(self.environment, self.base_url or None)

    def __repr__(self) -> str:
        return (
            f"AvidbaseConfig(account_id={self.account_id!r}, api_key={'***' if self.api_key else 'EMPTY'}, "
            f"environment={self.environment!r}, base_url={self.base_url!r}, demo_mode={self.demo_mode})"
        )


def _get_or_generate(var_name: str, demo_default: Optional[str] = None, required: bool = True, demo_mode: bool = False) -> str:
    """Get environment variable or use demo default."""
    value = os.environ.get(var_name)
    if value:
        return value

    if demo_mode and demo_default is not None:
        logger.info("[demo-mode] Using default for %s", var_name)
        return demo_default

    if not required:
        return ""

    raise RuntimeError(f"Environment variable {var_name} is required in production mode.")


def load_settings() -> AvidbaseConfig:
    """Load client settings from /run/secrets and environment variables."""
    demo_mode = os.environ.get("DEMO_MODE", "false").lower() == "true"

    account_id = _load_secret_from_file("avidbase_account_id", "AVIDBASE_ACCOUNT_ID")
    if not account_id:
        account_id = _get_or_generate("AVIDBASE_ACCOUNT_ID", demo_default=DEMO_ACCOUNT_ID, demo_mode=demo_mode)

    api_key = _load_secret_from_file("avidbase_api_key", "AVIDBASE_API_KEY")
    if not api_key:
        api_key = _get_or_generate("AVIDBASE_API_KEY", demo_default=DEMO_API_KEY, demo_mode=demo_mode)

    environment = os.environ.get("AVIDBASE_ENVIRONMENT", "development" if demo_mode else "production").strip().lower()
    base_url = os.environ.get("AVIDBASE_BASE_URL", "").strip()

    config = AvidbaseConfig(
        account_id=account_id,
        api_key=api_key,
        environment=environment,
        base_url=base_url,
        demo_mode=demo_mode,
    )
    # Fail fast on an unknown environment name
    base = config.resolved_base_url

    mode_label = "DEMO" if demo_mode else "PRODUCTION"
    logger.info(
        "Mode=%s; account=%s; base_url=%s; api_key=%s",
        mode_label,
        account_id,
        base,
        "***" if api_key else "EMPTY",
    )
    if demo_mode:
        logger.warning("Demo credentials in use. Do not deploy with these defaults.")

    return config
