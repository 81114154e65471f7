"""Unified configuration schema for contentful_converge.

Defines Pydantic models for the YAML config file with dedicated sections
for the Contentful connection, reconciliation tuning and logging, plus an
adapter that flattens them into the ``Config`` dataclass.

Usage:
    from contentful_converge.config_schema import (
        UnifiedConfig, build_config, to_legacy_config,
    )

    raw = load_hierarchical_config()
    unified = build_config(raw)
    config = to_legacy_config(unified, cli_overrides={"base_url": "https://..."})
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from pydantic import BaseModel, Field

if TYPE_CHECKING:
    from .config import Config

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Section models
# ---------------------------------------------------------------------------


class ContentfulConfig(BaseModel):
    """Contentful Management API connection settings.

    All fields are optional to support zero-config: env vars and CLI args
    can supply them at runtime instead.
    """

    cma_token: str | None = Field(
        default=None, description="CMA personal access token"
    )
    organization_id: str | None = Field(
        default=None, description="Organization owning new spaces"
    )
    base_url: str | None = Field(default=None, description="API base URL")
    environment: str | None = Field(
        default=None, description="Environment id (default: master)"
    )
    debug: bool = Field(
        default=False, description="Log request and response bodies"
    )
    timeout: float = Field(
        default=30.0, gt=0, description="Per-request timeout in seconds"
    )

    model_config = {"frozen": True}


class ReconcileConfig(BaseModel):
    """Tuning for the reconciliation engine.

    Attributes:
        settle_delay: First wait (seconds) before re-reading an asset after
            processing was triggered.
        settle_max_attempts: Upper bound on settling polls.
        settle_backoff: Multiplier applied to the wait after each poll.
    """

    settle_delay: float = Field(default=1.0, ge=0)
    settle_max_attempts: int = Field(default=5, ge=1, le=20)
    settle_backoff: float = Field(default=2.0, ge=1.0)

    model_config = {"frozen": True}


class LoggingConfig(BaseModel):
    """Logging configuration.

    Attributes:
        level: Log level name (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        file: Optional log file path.
        format: "text" or "json".
    """

    level: str = Field(default="INFO", description="Log level")
    file: str | None = Field(default=None, description="Log file path")
    format: str = Field(default="text", pattern="^(text|json)$")

    model_config = {"frozen": True}


# ---------------------------------------------------------------------------
# Top-level unified config
# ---------------------------------------------------------------------------


class UnifiedConfig(BaseModel):
    """Top-level unified configuration.

    Every section has defaults, so ``UnifiedConfig()`` is always valid.
    """

    contentful: ContentfulConfig = Field(default_factory=ContentfulConfig)
    reconcile: ReconcileConfig = Field(default_factory=ReconcileConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    model_config = {"frozen": True}

    def fallbacks(self) -> dict[str, Any]:
        """Flatten the connection and reconcile sections for ``load_config``.

        ``None`` values are dropped so they never shadow env vars.
        """
        merged = {
            **self.contentful.model_dump(),
            **self.reconcile.model_dump(),
        }
        return {k: v for k, v in merged.items() if v is not None}


# ---------------------------------------------------------------------------
# Factory function
# ---------------------------------------------------------------------------


def build_config(raw_data: dict) -> UnifiedConfig:
    """Construct a ``UnifiedConfig`` from the raw dict returned by
    ``load_hierarchical_config()``.

    Missing sections get defaults.
    """
    if not raw_data:
        return UnifiedConfig()

    return UnifiedConfig(**raw_data)


# ---------------------------------------------------------------------------
# Adapter: UnifiedConfig -> Config dataclass
# ---------------------------------------------------------------------------


def to_legacy_config(
    unified: UnifiedConfig,
    cli_overrides: dict | None = None,
) -> Config:
    """Convert a ``UnifiedConfig`` into the ``Config`` dataclass, applying
    CLI overrides on top.

    Precedence: CLI override > unified config value > default.

    CLI overrides dict keys: cma_token, organization_id, base_url,
    environment, debug.

    Returns:
        ``Config`` instance (NOT validated; run ``validate_config()``).
    """
    # Imported here: config.py is the lower layer.
    from .config import DEFAULT_BASE_URL, DEFAULT_ENVIRONMENT, Config

    overrides = cli_overrides or {}
    section = unified.contentful
    tuning = unified.reconcile

    return Config(
        cma_token=overrides.get("cma_token") or section.cma_token or "",
        organization_id=overrides.get("organization_id")
        or section.organization_id
        or "",
        base_url=overrides.get("base_url")
        or section.base_url
        or DEFAULT_BASE_URL,
        environment=overrides.get("environment")
        or section.environment
        or DEFAULT_ENVIRONMENT,
        debug=overrides.get("debug", False) or section.debug,
        timeout=section.timeout,
        settle_delay=tuning.settle_delay,
        settle_max_attempts=tuning.settle_max_attempts,
        settle_backoff=tuning.settle_backoff,
    )
