"""Generic Create/Read/Update/Delete orchestration for one entity kind.

``EntityReconciler`` owns the control flow and the error policy; each kind
supplies four small mappings:

- ``service``  -- which collaborator service to call
- ``build``    -- attributes -> new entity (version 0)
- ``apply``    -- attributes applied onto a freshly fetched entity
- ``refresh``  -- remote entity -> attributes

Error policy:

* ``NOT_FOUND`` on read clears the identity (drift) with no diagnostics.
* ``NOT_FOUND`` on delete is success.
* Every other ``ApiError``, and client-side ``ValueError``, is translated
  exactly once, here, into the result's diagnostics.  Nothing is retried.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Generic, TypeVar

from pydantic import BaseModel

from ..core.errors import ApiError, ErrorKind
from .diagnostics import Diagnostic, has_error, translate_error

if TYPE_CHECKING:
    from ..core.client import ContentfulClient, EntityService

logger = logging.getLogger(__name__)

A = TypeVar("A", bound=BaseModel)
E = TypeVar("E", bound=BaseModel)


@dataclass(frozen=True, slots=True)
class ReconcileResult(Generic[A]):
    """Outcome of one reconciler operation.

    Attributes:
        attributes: Updated local attribute set.  On failure it still
            carries whatever was learned before the failure (e.g. the id of
            an entity that was created but could not be published).
        diagnostics: Warnings followed by at most one error.
    """

    attributes: A
    diagnostics: list[Diagnostic] = field(default_factory=list)

    @property
    def has_error(self) -> bool:
        return has_error(self.diagnostics)

    def to_dict(self) -> dict[str, Any]:
        return {
            "attributes": self.attributes.model_dump(mode="json"),
            "diagnostics": [d.model_dump(mode="json") for d in self.diagnostics],
        }


class EntityReconciler(Generic[A, E]):
    """Base reconciler.  Subclasses set ``kind`` and ``attributes_model``."""

    kind: str = "resource"
    attributes_model: type[A]

    # ------------------------------------------------------------------
    # Per-kind hooks
    # ------------------------------------------------------------------

    def service(self, client: ContentfulClient) -> EntityService[E]:
        raise NotImplementedError

    def scope(self, attrs: A) -> str | None:
        """Parent scope passed to every verb (the owning space id)."""
        return attrs.space_id  # type: ignore[attr-defined]

    def build(self, attrs: A) -> E:
        raise NotImplementedError

    def apply(self, attrs: A, entity: E) -> E:
        raise NotImplementedError

    def refresh(self, attrs: A, entity: E) -> A:
        raise NotImplementedError

    def after_upsert(self, client: ContentfulClient, attrs: A, entity: E) -> E:
        """Extra steps after a successful upsert (lifecycle for entries/assets)."""
        return entity

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    def create(self, client: ContentfulClient, attrs: A) -> ReconcileResult[A]:
        """Create the entity and record its identity.

        The id is taken from the server's response and set exactly once.
        """
        logger.info("Creating %s", self.kind)
        try:
            service = self.service(client)
            entity = service.upsert(self.scope(attrs), self.build(attrs))
            attrs = attrs.model_copy(update={"id": entity.sys.id})  # type: ignore[attr-defined]
            attrs = self.refresh(attrs, entity)
            logger.info("Created %s %s", self.kind, attrs.id)  # type: ignore[attr-defined]

            entity = self.after_upsert(client, attrs, entity)
            attrs = self.refresh(attrs, entity)
        except (ApiError, ValueError) as exc:
            return self._failed("create", attrs, exc)
        return ReconcileResult(attrs)

    def read(self, client: ContentfulClient, attrs: A) -> ReconcileResult[A]:
        """Refresh attributes from the remote entity.

        A missing remote entity is drift, not an error: the identity is
        cleared so the next apply re-creates it.
        """
        logger.debug("Reading %s %s", self.kind, attrs.id)  # type: ignore[attr-defined]
        try:
            entity_id = self._identity(attrs)
            entity = self.service(client).get(self.scope(attrs), entity_id)
        except ApiError as exc:
            match exc.kind:
                case ErrorKind.NOT_FOUND:
                    logger.info(
                        "%s %s not found remotely, clearing identity",
                        self.kind,
                        attrs.id,  # type: ignore[attr-defined]
                    )
                    return ReconcileResult(attrs.model_copy(update={"id": None}))
                case _:
                    return self._failed("read", attrs, exc)
        except ValueError as exc:
            return self._failed("read", attrs, exc)

        return ReconcileResult(self.refresh(attrs, entity))

    def update(self, client: ContentfulClient, attrs: A) -> ReconcileResult[A]:
        """Apply declared attributes onto the current remote entity.

        The entity is fetched first so the write carries the version the
        server holds now.  A concurrent modification between fetch and
        write surfaces as a conflict error.
        """
        try:
            entity_id = self._identity(attrs)
            logger.info("Updating %s %s", self.kind, entity_id)
            service = self.service(client)
            scope = self.scope(attrs)

            current = service.get(scope, entity_id)
            entity = service.upsert(scope, self.apply(attrs, current))
            attrs = self.refresh(attrs, entity)

            entity = self.after_upsert(client, attrs, entity)
            attrs = self.refresh(attrs, entity)
        except (ApiError, ValueError) as exc:
            return self._failed("update", attrs, exc)
        logger.info(
            "Updated %s %s to version %s",
            self.kind,
            attrs.id,  # type: ignore[attr-defined]
            attrs.version,  # type: ignore[attr-defined]
        )
        return ReconcileResult(attrs)

    def delete(self, client: ContentfulClient, attrs: A) -> ReconcileResult[A]:
        """Delete the remote entity.  Already absent counts as success."""
        try:
            entity_id = self._identity(attrs)
            logger.info("Deleting %s %s", self.kind, entity_id)
            service = self.service(client)
            scope = self.scope(attrs)

            entity = service.get(scope, entity_id)
            service.delete(scope, entity)
        except ApiError as exc:
            match exc.kind:
                case ErrorKind.NOT_FOUND:
                    logger.info("%s %s already absent", self.kind, attrs.id)  # type: ignore[attr-defined]
                case _:
                    return self._failed("delete", attrs, exc)
        except ValueError as exc:
            return self._failed("delete", attrs, exc)

        logger.info("Deleted %s %s", self.kind, attrs.id)  # type: ignore[attr-defined]
        return ReconcileResult(attrs.model_copy(update={"id": None}))

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _identity(self, attrs: A) -> str:
        entity_id = attrs.id  # type: ignore[attr-defined]
        if not entity_id:
            raise ValueError(f"{self.kind} has no id; it must be created first")
        return entity_id

    def _failed(
        self, operation: str, attrs: A, exc: BaseException
    ) -> ReconcileResult[A]:
        logger.warning("%s %s failed: %s", operation, self.kind, exc)
        return ReconcileResult(attrs, translate_error(exc))
