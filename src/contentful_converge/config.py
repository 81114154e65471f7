"""Connection and reconciliation settings.

Reads Contentful connection settings from CLI args, environment variables,
.env files, and YAML config file fallbacks.

Precedence (highest to lowest):
    CLI args > Environment variables > .env file > YAML config > Built-in defaults

Environment variables:
    CONTENTFUL_MANAGEMENT_TOKEN: CMA personal access token (required)
    CONTENTFUL_ORGANIZATION_ID: Organization owning new spaces (required)
    CONTENTFUL_BASE_URL: API base URL (optional, default: https://api.contentful.com)
    CONTENTFUL_ENVIRONMENT: Environment for environment-scoped resources (optional, default: master)
    CONTENTFUL_DEBUG: Log request/response bodies (optional, default: false)
    CONTENTFUL_SETTLE_DELAY: Initial asset settling delay in seconds (optional, default: 1.0)
    CONTENTFUL_SETTLE_MAX_ATTEMPTS: Asset settling poll attempts (optional, default: 5)
"""

import logging
import os
from dataclasses import dataclass
from urllib.parse import urlparse

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://api.contentful.com"
DEFAULT_ENVIRONMENT = "master"


@dataclass
class Config:
    cma_token: str
    organization_id: str
    base_url: str = DEFAULT_BASE_URL
    environment: str = DEFAULT_ENVIRONMENT
    debug: bool = False
    timeout: float = 30.0
    settle_delay: float = 1.0
    settle_max_attempts: int = 5
    settle_backoff: float = 2.0


def validate_config(config: Config) -> None:
    """Validate configuration values and raise ValueError if invalid.

    Args:
        config: Config instance to validate.

    Raises:
        ValueError: If the base URL is malformed, credentials are empty,
            or a numeric setting is out of range.
    """
    config.base_url = config.base_url.strip()

    if not config.base_url.startswith(("http://", "https://")):
        raise ValueError(
            f"Invalid base URL '{config.base_url}': must start with http:// or https://"
        )

    parsed = urlparse(config.base_url)
    if not parsed.hostname:
        raise ValueError(
            f"Invalid base URL '{config.base_url}': URL must include a hostname"
        )

    config.base_url = config.base_url.removesuffix("/")

    if not config.cma_token.strip():
        raise ValueError(
            "CMA token cannot be empty. Set CONTENTFUL_MANAGEMENT_TOKEN environment variable."
        )

    if not config.organization_id.strip():
        raise ValueError(
            "Organization id cannot be empty. Set CONTENTFUL_ORGANIZATION_ID environment variable."
        )

    if not config.environment.strip():
        raise ValueError("Environment cannot be empty.")

    if config.timeout <= 0:
        raise ValueError(
            f"Invalid timeout {config.timeout}: must be greater than 0"
        )

    if config.settle_delay < 0:
        raise ValueError(
            f"Invalid settle delay {config.settle_delay}: must not be negative"
        )

    if not (1 <= config.settle_max_attempts <= 20):
        raise ValueError(
            f"Invalid settle max attempts {config.settle_max_attempts}: must be between 1 and 20"
        )

    if config.settle_backoff < 1.0:
        raise ValueError(
            f"Invalid settle backoff {config.settle_backoff}: must be at least 1.0"
        )

    if config.debug:
        logger.warning(
            "Debug mode enabled: request and response bodies will be logged."
        )


def _get_bool_env(key: str) -> bool | None:
    """Return True/False from env var, or None if unset."""
    val = os.getenv(key)
    if val is None:
        return None
    return val.lower() in ("true", "1", "yes", "on")


def load_config(
    cma_token: str | None = None,
    organization_id: str | None = None,
    base_url: str | None = None,
    environment: str | None = None,
    debug: bool = False,
    yaml_fallbacks: dict | None = None,
) -> Config:
    """Load configuration with unified precedence.

    Resolution order for each field (highest to lowest):
        CLI arg > env var / .env > yaml_fallbacks > built-in default

    The caller is responsible for calling ``load_dotenv()`` before this
    function so that .env values are available via ``os.getenv()``.

    The debug flag is resolved here, once, and carried on the returned
    ``Config``; nothing else reads it from the environment.

    Args:
        cma_token: Override CMA token.
        organization_id: Override organization id.
        base_url: Override API base URL.
        environment: Override environment id.
        debug: Enable request/response body logging (CLI flag).
        yaml_fallbacks: Dict of values merged from the YAML config file
            ``contentful`` and ``reconcile`` sections.

    Returns:
        Validated Config instance.

    Raises:
        ValueError: If required config (token, organization) is missing
            after checking all sources, or a value fails validation.
    """
    fb = yaml_fallbacks or {}

    # --- String fields: CLI > env > YAML > error/default ---

    token = (
        cma_token
        or os.getenv("CONTENTFUL_MANAGEMENT_TOKEN")
        or fb.get("cma_token")
    )
    if not token:
        raise ValueError(
            "CMA token not found. Set CONTENTFUL_MANAGEMENT_TOKEN environment variable, "
            "pass --token CLI argument, or add 'cma_token' to config.yml."
        )

    org = (
        organization_id
        or os.getenv("CONTENTFUL_ORGANIZATION_ID")
        or fb.get("organization_id")
    )
    if not org:
        raise ValueError(
            "Organization id not found. Set CONTENTFUL_ORGANIZATION_ID environment variable, "
            "pass --organization CLI argument, or add 'organization_id' to config.yml."
        )

    final_base_url = (
        base_url
        or os.getenv("CONTENTFUL_BASE_URL")
        or fb.get("base_url")
        or DEFAULT_BASE_URL
    )
    final_environment = (
        environment
        or os.getenv("CONTENTFUL_ENVIRONMENT")
        or fb.get("environment")
        or DEFAULT_ENVIRONMENT
    )

    # --- Boolean fields: CLI > env > YAML > default ---

    if debug:
        final_debug = True
    else:
        env_debug = _get_bool_env("CONTENTFUL_DEBUG")
        if env_debug is not None:
            final_debug = env_debug
        else:
            final_debug = bool(fb.get("debug", False))

    # --- Numeric fields: env > YAML > default ---

    settle_delay_raw = os.getenv("CONTENTFUL_SETTLE_DELAY")
    if settle_delay_raw is not None:
        try:
            final_settle_delay = float(settle_delay_raw)
        except ValueError:
            raise ValueError(
                f"Invalid CONTENTFUL_SETTLE_DELAY '{settle_delay_raw}': must be a number of seconds"
            ) from None
    else:
        final_settle_delay = float(fb.get("settle_delay", 1.0))

    settle_attempts_raw = os.getenv("CONTENTFUL_SETTLE_MAX_ATTEMPTS")
    if settle_attempts_raw is not None:
        try:
            final_settle_attempts = int(settle_attempts_raw)
        except ValueError:
            raise ValueError(
                f"Invalid CONTENTFUL_SETTLE_MAX_ATTEMPTS '{settle_attempts_raw}': must be a number between 1 and 20"
            ) from None
    else:
        final_settle_attempts = int(fb.get("settle_max_attempts", 5))

    config = Config(
        cma_token=token.strip(),
        organization_id=org.strip(),
        base_url=final_base_url,
        environment=final_environment.strip(),
        debug=final_debug,
        timeout=float(fb.get("timeout", 30.0)),
        settle_delay=final_settle_delay,
        settle_max_attempts=final_settle_attempts,
        settle_backoff=float(fb.get("settle_backoff", 2.0)),
    )

    validate_config(config)

    return config
