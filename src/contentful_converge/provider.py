"""Resource registry and operation dispatch.

Key concepts:
- ResourceSpec: Immutable record linking a resource type name to its
  attribute model and a factory for its reconciler.
- Provider: Holds the one ``ContentfulClient`` built from the resolved
  ``Config`` and dispatches ``create|read|update|delete`` to reconcilers.
"""

import logging
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from pydantic import BaseModel, ValidationError

from .config import Config
from .core.client import ContentfulClient
from .reconcile.attributes import (
    APIKeyAttributes,
    AssetAttributes,
    EntryAttributes,
    EnvironmentAttributes,
    LocaleAttributes,
    SpaceAttributes,
    WebhookAttributes,
)
from .reconcile.base import EntityReconciler, ReconcileResult
from .reconcile.diagnostics import Diagnostic
from .reconcile.resources import (
    APIKeyReconciler,
    AssetReconciler,
    EntryReconciler,
    EnvironmentReconciler,
    LocaleReconciler,
    SpaceReconciler,
    WebhookReconciler,
)

logger = logging.getLogger(__name__)

OPERATIONS = ("create", "read", "update", "delete")


@dataclass(frozen=True, slots=True)
class ResourceSpec:
    """Immutable specification for one resource type.

    Attributes:
        attributes: Pydantic model the flat attribute dict decodes into.
        factory: Builds the reconciler from the resolved configuration.
    """

    attributes: type[BaseModel]
    factory: Callable[[Config], EntityReconciler]


RESOURCE_TYPES: dict[str, ResourceSpec] = {
    "contentful_space": ResourceSpec(
        SpaceAttributes, lambda config: SpaceReconciler()
    ),
    "contentful_environment": ResourceSpec(
        EnvironmentAttributes, lambda config: EnvironmentReconciler()
    ),
    "contentful_locale": ResourceSpec(
        LocaleAttributes, lambda config: LocaleReconciler()
    ),
    "contentful_apikey": ResourceSpec(
        APIKeyAttributes, lambda config: APIKeyReconciler()
    ),
    "contentful_webhook": ResourceSpec(
        WebhookAttributes, lambda config: WebhookReconciler()
    ),
    "contentful_entry": ResourceSpec(
        EntryAttributes, lambda config: EntryReconciler()
    ),
    "contentful_asset": ResourceSpec(
        AssetAttributes,
        lambda config: AssetReconciler(
            settle_delay=config.settle_delay,
            settle_max_attempts=config.settle_max_attempts,
            settle_backoff=config.settle_backoff,
        ),
    ),
}


def _spec(type_name: str) -> ResourceSpec:
    spec = RESOURCE_TYPES.get(type_name)
    if spec is None:
        known = ", ".join(sorted(RESOURCE_TYPES))
        raise ValueError(f"Unknown resource type: {type_name} (expected one of {known})")
    return spec


def format_attribute_errors(
    type_name: str, exc: ValidationError
) -> list[Diagnostic]:
    """One WARNING per pydantic validation error, then a single ERROR."""
    warnings = [
        Diagnostic.warning(
            f"{err['msg']} ({'.'.join(str(p) for p in err['loc'])})"
        )
        for err in exc.errors()
    ]
    return [*warnings, Diagnostic.error(f"Invalid attributes for {type_name}")]


class Provider:
    """Entry point for applying declared resources.

    The client is created once here and shared by every reconciler call;
    there is no teardown.
    """

    def __init__(self, config: Config, client: ContentfulClient | None = None):
        self.config = config
        self.client = client or ContentfulClient(config)
        logger.debug(
            "Provider ready for %s (environment %s)",
            config.base_url,
            config.environment,
        )

    def reconciler(self, type_name: str) -> EntityReconciler:
        return _spec(type_name).factory(self.config)

    def decode_attributes(self, type_name: str, raw: dict[str, Any]) -> BaseModel:
        """Decode a flat attribute dict into the resource's attribute model.

        Raises:
            ValueError: Unknown resource type.
            pydantic.ValidationError: Attributes do not match the schema.
        """
        return _spec(type_name).attributes.model_validate(raw)

    def apply(
        self, operation: str, type_name: str, raw: dict[str, Any]
    ) -> ReconcileResult:
        """Run one operation for one resource.

        Args:
            operation: create, read, update or delete.
            type_name: Resource type, e.g. ``contentful_entry``.
            raw: Flat attribute dict.

        Raises:
            ValueError: Unknown operation or resource type.
            pydantic.ValidationError: Attributes do not match the schema.
        """
        if operation not in OPERATIONS:
            raise ValueError(
                f"Unknown operation: {operation} (expected one of {', '.join(OPERATIONS)})"
            )
        reconciler = self.reconciler(type_name)
        attrs = self.decode_attributes(type_name, raw)
        logger.info("%s %s", operation, type_name)
        result = getattr(reconciler, operation)(self.client, attrs)
        if result.has_error:
            logger.error(
                "%s %s failed: %s",
                operation,
                type_name,
                result.diagnostics[-1].summary,
            )
        return result
