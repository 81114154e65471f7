"""Publish/archive lifecycle for entries and assets.

An entity is in exactly one of three states, derived from its ``sys``:

- ``ARCHIVED``  -- ``archivedAt`` set
- ``PUBLISHED`` -- ``publishedAt`` set (and not archived)
- ``DRAFT``     -- neither

The declared target is two independent booleans, ``published`` and
``archived``.  Both may be true; the CMA unpublishes on archive, so the
machine always evaluates the publish rule before the archive rule:

1. published and not currently published -> PUBLISH;
   not published and currently published -> UNPUBLISH
2. archived and not currently archived -> ARCHIVE;
   not archived and currently archived -> UNARCHIVE

Rule 2 is evaluated against the entity returned by the rule 1 verb, so each
verb carries the version the server currently holds.  The first failing
verb raises; verbs already applied are not rolled back.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from enum import Enum
from typing import TypeVar

from ..core.client import PublishableService
from ..core.models import HasSys, Sys

logger = logging.getLogger(__name__)

E = TypeVar("E", bound=HasSys)


class LifecycleState(str, Enum):
    DRAFT = "draft"
    PUBLISHED = "published"
    ARCHIVED = "archived"

    @classmethod
    def of(cls, sys: Sys) -> LifecycleState:
        if sys.is_archived:
            return cls.ARCHIVED
        if sys.is_published:
            return cls.PUBLISHED
        return cls.DRAFT


class Transition(str, Enum):
    PUBLISH = "publish"
    UNPUBLISH = "unpublish"
    ARCHIVE = "archive"
    UNARCHIVE = "unarchive"


def next_publish_transition(sys: Sys, published: bool) -> Transition | None:
    if published and not sys.is_published:
        return Transition.PUBLISH
    if not published and sys.is_published:
        return Transition.UNPUBLISH
    return None


def next_archive_transition(sys: Sys, archived: bool) -> Transition | None:
    if archived and not sys.is_archived:
        return Transition.ARCHIVE
    if not archived and sys.is_archived:
        return Transition.UNARCHIVE
    return None


class LifecycleStateMachine:
    """Drive an entity towards its declared ``published``/``archived`` target."""

    def converge(
        self,
        service: PublishableService[E],
        space_id: str,
        entity: E,
        published: bool,
        archived: bool,
    ) -> E:
        """Apply the publish rule, then the archive rule.

        Args:
            service: Lifecycle verbs for the entity kind.
            space_id: Owning space.
            entity: Freshly read entity (its version must be current).
            published: Target publish membership.
            archived: Target archive membership.

        Returns:
            The entity as returned by the last applied verb (or *entity*
            unchanged when already converged).

        Raises:
            ApiError: From the first failing verb.
        """
        for rule, target in (
            (next_publish_transition, published),
            (next_archive_transition, archived),
        ):
            transition = rule(entity.sys, target)
            if transition is None:
                continue
            logger.info(
                "%s %s (version %s, state %s)",
                transition.value,
                entity.sys.id,
                entity.sys.version,
                LifecycleState.of(entity.sys).value,
            )
            verb = getattr(service, transition.value)
            entity = verb(space_id, entity)
        return entity


def wait_for_stable_version(
    fetch: Callable[[], E],
    initial_delay: float = 1.0,
    max_attempts: int = 5,
    backoff: float = 2.0,
    sleep: Callable[[float], None] = time.sleep,
) -> E:
    """Poll until two consecutive reads report the same ``sys.version``.

    Asset processing bumps the version asynchronously after upload, so the
    version read straight after ``process`` may already be stale.  Waits
    *initial_delay* before the first comparison and multiplies the wait by
    *backoff* after every change observed.

    Returns:
        The last entity read.  If the version is still moving after
        *max_attempts* polls a warning is logged and the last read is
        returned; a stale version then surfaces as a conflict downstream.
    """
    entity = fetch()
    delay = initial_delay
    for attempt in range(1, max_attempts + 1):
        if delay > 0:
            sleep(delay)
        latest = fetch()
        previous_version = entity.sys.version
        entity = latest
        if latest.sys.version == previous_version:
            logger.debug(
                "Version of %s settled at %s after %d poll(s)",
                latest.sys.id,
                previous_version,
                attempt,
            )
            return latest
        delay *= backoff

    logger.warning(
        "Version of %s still changing after %d polls; continuing with version %s",
        entity.sys.id,
        max_attempts,
        entity.sys.version,
    )
    return entity
