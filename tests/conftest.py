"""Shared pytest fixtures for contentful-converge tests."""

import itertools
from unittest.mock import MagicMock

import pytest

from contentful_converge.config import Config
from contentful_converge.core.errors import ApiError, ErrorKind
from contentful_converge.core.models import Link, Sys

TIMESTAMP = "2024-01-01T00:00:00.000Z"


# ---------------------------------------------------------------------------
# In-memory CMA
# ---------------------------------------------------------------------------


class FakeService:
    """One CMA collection held in a dict.

    Every write bumps ``sys.version``; writes carrying a different version
    than the stored one fail with CONFLICT.  ``fail(verb, exc)`` makes the
    next call of *verb* raise *exc* (one shot).
    """

    sys_type = "Entity"

    def __init__(self) -> None:
        self.entities: dict[tuple, object] = {}
        self.calls: list[tuple] = []
        self.failures: dict[str, BaseException] = {}
        self._ids = itertools.count(1)

    # -- test helpers ---------------------------------------------------

    def fail(self, verb: str, exc: BaseException) -> None:
        self.failures[verb] = exc

    def verbs(self) -> list[str]:
        return [call[0] for call in self.calls]

    def stored(self, space_id, entity_id):
        return self.entities[(space_id, entity_id)]

    def seed(self, space_id, entity, **sys_fields):
        """Store *entity* directly, as if created earlier."""
        entity_id = entity.sys.id or f"{self.sys_type.lower()}{next(self._ids)}"
        sys = entity.sys.model_copy(
            update={
                "id": entity_id,
                "type": self.sys_type,
                "version": 1,
                "space": Link.to("Space", space_id or entity_id),
                **sys_fields,
            }
        )
        stored = entity.model_copy(update={"sys": sys})
        self.entities[(space_id, entity_id)] = stored
        return stored

    # -- internals ------------------------------------------------------

    def _record(self, verb, space_id, entity_id):
        self.calls.append((verb, space_id, entity_id))
        exc = self.failures.pop(verb, None)
        if exc is not None:
            raise exc

    def _require(self, space_id, entity_id):
        try:
            return self.entities[(space_id, entity_id)]
        except KeyError:
            raise ApiError(
                ErrorKind.NOT_FOUND,
                "The resource could not be found.",
                status_code=404,
            ) from None

    def _check_version(self, stored, entity):
        if stored.sys.version != entity.sys.version:
            raise ApiError(
                ErrorKind.CONFLICT,
                "VersionMismatch",
                status_code=409,
            )

    def _write(self, space_id, stored, entity=None, **sys_fields):
        sys = stored.sys.model_copy(
            update={
                "version": stored.sys.version + 1,
                "updated_at": TIMESTAMP,
                **sys_fields,
            }
        )
        base = entity if entity is not None else stored
        updated = base.model_copy(update={"sys": sys})
        self.entities[(space_id, sys.id)] = updated
        return updated

    def _new_id(self, entity):
        return entity.sys.id or f"{self.sys_type.lower()}{next(self._ids)}"

    def _on_create(self, entity):
        return entity

    # -- verbs ----------------------------------------------------------

    def get(self, space_id, entity_id):
        self._record("get", space_id, entity_id)
        return self._require(space_id, entity_id)

    def upsert(self, space_id, entity):
        self._record("upsert", space_id, entity.sys.id)
        if entity.sys.version:
            stored = self._require(space_id, entity.sys.id)
            self._check_version(stored, entity)
            return self._write(space_id, stored, entity)

        entity_id = self._new_id(entity)
        if (space_id, entity_id) in self.entities:
            raise ApiError(ErrorKind.CONFLICT, "VersionMismatch", status_code=409)
        sys = Sys(
            id=entity_id,
            type=self.sys_type,
            version=1,
            space=Link.to("Space", space_id or entity_id),
            content_type=entity.sys.content_type,
            updated_at=TIMESTAMP,
        )
        created = self._on_create(entity.model_copy(update={"sys": sys}))
        self.entities[(space_id, entity_id)] = created
        return created

    def delete(self, space_id, entity):
        self._record("delete", space_id, entity.sys.id)
        stored = self._require(space_id, entity.sys.id)
        self._check_version(stored, entity)
        del self.entities[(space_id, entity.sys.id)]


class FakePublishableService(FakeService):
    """Adds publish/archive timestamps the way the CMA tracks them."""

    def _transition(self, verb, space_id, entity, **sys_fields):
        self._record(verb, space_id, entity.sys.id)
        stored = self._require(space_id, entity.sys.id)
        self._check_version(stored, entity)
        updated = self._write(space_id, stored, **sys_fields)
        return updated.model_copy(update={"locale": entity.locale})

    def publish(self, space_id, entity):
        if self._require(space_id, entity.sys.id).sys.is_archived:
            self._record("publish", space_id, entity.sys.id)
            raise ApiError(
                ErrorKind.VALIDATION,
                "Cannot publish an archived entity",
                status_code=422,
            )
        return self._transition("publish", space_id, entity, published_at=TIMESTAMP)

    def unpublish(self, space_id, entity):
        return self._transition("unpublish", space_id, entity, published_at=None)

    def archive(self, space_id, entity):
        return self._transition(
            "archive", space_id, entity, archived_at=TIMESTAMP, published_at=None
        )

    def unarchive(self, space_id, entity):
        return self._transition("unarchive", space_id, entity, archived_at=None)


class FakeAssetService(FakePublishableService):
    """Processing completes asynchronously: the first read after
    ``process`` observes the processed file and a bumped version."""

    sys_type = "Asset"

    def __init__(self) -> None:
        super().__init__()
        self.pending: set[tuple] = set()

    def process(self, space_id, asset):
        self._record("process", space_id, asset.sys.id)
        self._require(space_id, asset.sys.id)
        self.pending.add((space_id, asset.sys.id))

    def get(self, space_id, entity_id):
        key = (space_id, entity_id)
        if key in self.pending:
            self.pending.discard(key)
            stored = self._require(space_id, entity_id)
            files = {
                locale: f.model_copy(
                    update={
                        "url": f"//images.ctfassets.net/{entity_id}/{f.file_name}",
                        "upload": None,
                    }
                )
                for locale, f in stored.fields.file.items()
            }
            processed = stored.model_copy(
                update={"fields": stored.fields.model_copy(update={"file": files})}
            )
            self._write(space_id, stored, processed)
        return super().get(space_id, entity_id)


class FakeAPIKeyService(FakeService):
    sys_type = "ApiKey"

    def _on_create(self, entity):
        return entity.model_copy(update={"access_token": f"cda-{entity.sys.id}"})


class FakeEnvironmentService(FakeService):
    sys_type = "Environment"

    def _new_id(self, entity):
        return entity.sys.id or entity.name


class FakeEntryService(FakePublishableService):
    sys_type = "Entry"


class FakeContentfulClient:
    """Duck-typed stand-in for ``ContentfulClient``."""

    def __init__(self, config=None) -> None:
        self.config = config
        self.spaces = FakeService()
        self.spaces.sys_type = "Space"
        self.environments = FakeEnvironmentService()
        self.locales = FakeService()
        self.locales.sys_type = "Locale"
        self.api_keys = FakeAPIKeyService()
        self.webhooks = FakeService()
        self.webhooks.sys_type = "WebhookDefinition"
        self.entries = FakeEntryService()
        self.assets = FakeAssetService()


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def mock_config():
    """Create a Config instance for testing (no settling delay)."""
    return Config(
        cma_token="test-token",
        organization_id="org-1",
        base_url="https://api.contentful.test",
        environment="master",
        settle_delay=0.0,
    )


@pytest.fixture
def fake_cma(mock_config):
    """In-memory CMA collaborator."""
    return FakeContentfulClient(mock_config)


@pytest.fixture
def mock_contentful_client(mock_config):
    """Create a mock ContentfulClient instance for testing."""
    from contentful_converge.core.client import ContentfulClient

    client = MagicMock(spec=ContentfulClient)
    client.config = mock_config
    return client
