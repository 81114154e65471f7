import json
import logging
import threading
from typing import Any, Generic, Protocol, TypeVar

import requests
from pydantic import BaseModel

from ..config import Config
from ..validators import validate_locale_code, validate_resource_id
from .errors import error_from_exception, error_from_response
from .models import (
    APIKey,
    Asset,
    Entry,
    Environment,
    Locale,
    Space,
    Webhook,
    to_payload,
)

logger = logging.getLogger(__name__)

CMA_CONTENT_TYPE = "application/vnd.contentful.management.v1+json"

E = TypeVar("E", bound=BaseModel)


# ---------------------------------------------------------------------------
# Verb set the reconcilers depend on
# ---------------------------------------------------------------------------


class EntityService(Protocol[E]):
    """CRUD verbs for one entity kind.

    ``upsert`` creates when ``entity.sys.version`` is 0 and updates
    otherwise; it returns the entity as the server now holds it.  All verbs
    raise ``ApiError`` on failure.
    """

    def get(self, space_id: str | None, entity_id: str) -> E: ...

    def upsert(self, space_id: str | None, entity: E) -> E: ...

    def delete(self, space_id: str | None, entity: E) -> None: ...


class PublishableService(EntityService[E], Protocol[E]):
    """Entries and assets additionally support lifecycle verbs."""

    def publish(self, space_id: str, entity: E) -> E: ...

    def unpublish(self, space_id: str, entity: E) -> E: ...

    def archive(self, space_id: str, entity: E) -> E: ...

    def unarchive(self, space_id: str, entity: E) -> E: ...


class AssetProcessingService(PublishableService[Asset], Protocol):
    def process(self, space_id: str, asset: Asset) -> None: ...


# ---------------------------------------------------------------------------
# Concrete services
# ---------------------------------------------------------------------------


class _Service(Generic[E]):
    """Shared CRUD implementation over one CMA collection.

    Subclasses set ``model`` and ``collection`` and may override
    ``_collection_path`` and ``_create``.
    """

    model: type[E]
    collection: str
    label: str = "Resource"

    def __init__(self, client: "ContentfulClient") -> None:
        self._client = client

    def _collection_path(self, space_id: str | None) -> str:
        return f"{self._client.space_path(space_id)}/{self.collection}"

    def _entity_path(self, space_id: str | None, entity_id: str | None) -> str:
        _require_id(entity_id, f"{self.label} id")
        return f"{self._collection_path(space_id)}/{entity_id}"

    def _decode(self, data: dict[str, Any] | None, entity: E | None = None) -> E:
        if data is None:
            raise ValueError(f"Empty response body for {self.label.lower()}")
        return self.model.model_validate(data)

    def _create(
        self, space_id: str | None, entity: E, payload: dict[str, Any]
    ) -> dict[str, Any] | None:
        return self._client.request(
            "POST", self._collection_path(space_id), payload=payload
        )

    def get(self, space_id: str | None, entity_id: str) -> E:
        """
        Fetch one entity.

        Raises:
            ApiError: NOT_FOUND if it does not exist, other kinds on failure
            ValueError: If an id is malformed
        """
        data = self._client.request("GET", self._entity_path(space_id, entity_id))
        return self._decode(data)

    def upsert(self, space_id: str | None, entity: E) -> E:
        """
        Create (version 0) or update (version > 0) an entity.

        Returns:
            The entity as stored by the server, with refreshed ``sys``.

        Raises:
            ApiError: CONFLICT when the version is stale, VALIDATION when
                the payload is rejected, other kinds on failure
        """
        payload = to_payload(entity)
        sys = entity.sys  # type: ignore[attr-defined]
        if sys.version:
            data = self._client.request(
                "PUT",
                self._entity_path(space_id, sys.id),
                payload=payload,
                version=sys.version,
            )
        else:
            data = self._create(space_id, entity, payload)
        return self._decode(data, entity)

    def delete(self, space_id: str | None, entity: E) -> None:
        """Delete an entity.  Raises ``ApiError`` (NOT_FOUND if already gone)."""
        sys = entity.sys  # type: ignore[attr-defined]
        self._client.request(
            "DELETE",
            self._entity_path(space_id, sys.id),
            version=sys.version or None,
        )


class _PublishableService(_Service[E]):
    """Lifecycle verbs shared by entries and assets."""

    def _transition(self, method: str, space_id: str, entity: E, state: str) -> E:
        sys = entity.sys  # type: ignore[attr-defined]
        data = self._client.request(
            method,
            f"{self._entity_path(space_id, sys.id)}/{state}",
            version=sys.version,
        )
        return self._decode(data, entity)

    def publish(self, space_id: str, entity: E) -> E:
        return self._transition("PUT", space_id, entity, "published")

    def unpublish(self, space_id: str, entity: E) -> E:
        return self._transition("DELETE", space_id, entity, "published")

    def archive(self, space_id: str, entity: E) -> E:
        return self._transition("PUT", space_id, entity, "archived")

    def unarchive(self, space_id: str, entity: E) -> E:
        return self._transition("DELETE", space_id, entity, "archived")

    def _create(
        self, space_id: str | None, entity: E, payload: dict[str, Any]
    ) -> dict[str, Any] | None:
        # Caller-supplied ids are created with PUT, server-assigned with POST.
        entity_id = entity.sys.id  # type: ignore[attr-defined]
        if entity_id:
            return self._client.request(
                "PUT",
                self._entity_path(space_id, entity_id),
                payload=payload,
                headers=self._create_headers(entity),
            )
        return self._client.request(
            "POST",
            self._collection_path(space_id),
            payload=payload,
            headers=self._create_headers(entity),
        )

    def _create_headers(self, entity: E) -> dict[str, str]:
        return {}

    def _decode(self, data: dict[str, Any] | None, entity: E | None = None) -> E:
        decoded = super()._decode(data, entity)
        if entity is not None:
            # Active locale is local bookkeeping, not part of the response.
            decoded = decoded.model_copy(
                update={"locale": entity.locale}  # type: ignore[attr-defined]
            )
        return decoded


class SpaceService(_Service[Space]):
    model = Space
    collection = "spaces"
    label = "Space"

    def _collection_path(self, space_id: str | None) -> str:
        return "/spaces"

    def _create(
        self, space_id: str | None, entity: Space, payload: dict[str, Any]
    ) -> dict[str, Any] | None:
        return self._client.request(
            "POST",
            "/spaces",
            payload=payload,
            headers={
                "X-Contentful-Organization": self._client.config.organization_id
            },
        )


class EnvironmentService(_Service[Environment]):
    model = Environment
    collection = "environments"
    label = "Environment"

    def _create(
        self, space_id: str | None, entity: Environment, payload: dict[str, Any]
    ) -> dict[str, Any] | None:
        # Environment ids are chosen by the caller; the name doubles as id.
        environment_id = entity.sys.id or entity.name
        return self._client.request(
            "PUT",
            self._entity_path(space_id, environment_id),
            payload=payload,
        )


class LocaleService(_Service[Locale]):
    model = Locale
    collection = "locales"
    label = "Locale"

    def _collection_path(self, space_id: str | None) -> str:
        return f"{self._client.environment_path(space_id)}/locales"


class APIKeyService(_Service[APIKey]):
    model = APIKey
    collection = "api_keys"
    label = "API key"


class WebhookService(_Service[Webhook]):
    model = Webhook
    collection = "webhook_definitions"
    label = "Webhook"


class EntryService(_PublishableService[Entry]):
    model = Entry
    collection = "entries"
    label = "Entry"

    def _collection_path(self, space_id: str | None) -> str:
        return f"{self._client.environment_path(space_id)}/entries"

    def _create_headers(self, entity: Entry) -> dict[str, str]:
        content_type_id = entity.sys.content_type_id
        _require_id(content_type_id, "Content type id")
        return {"X-Contentful-Content-Type": content_type_id}


class AssetService(_PublishableService[Asset]):
    model = Asset
    collection = "assets"
    label = "Asset"

    def _collection_path(self, space_id: str | None) -> str:
        return f"{self._client.environment_path(space_id)}/assets"

    def process(self, space_id: str, asset: Asset) -> None:
        """
        Trigger server-side processing of every uploaded file on the asset.

        Processing bumps the asset version asynchronously; callers must
        re-read before the next write.
        """
        base = self._entity_path(space_id, asset.sys.id)
        for locale in asset.fields.file:
            is_valid, error_msg = validate_locale_code(locale)
            if not is_valid:
                raise ValueError(error_msg)
            self._client.request(
                "PUT",
                f"{base}/files/{locale}/process",
                version=asset.sys.version,
            )


def _require_id(value: str | None, field_name: str) -> None:
    is_valid, error_msg = validate_resource_id(value, field_name)
    if not is_valid:
        raise ValueError(error_msg)


# ---------------------------------------------------------------------------
# Client
# ---------------------------------------------------------------------------


class ContentfulClient:
    """Contentful Management API client.

    One ``requests.Session`` per thread carries the bearer token.  With
    ``config.debug`` set, request and response bodies are logged at DEBUG.
    """

    def __init__(self, config: Config):
        self.config = config
        self._thread_local = threading.local()

        self.spaces = SpaceService(self)
        self.environments = EnvironmentService(self)
        self.locales = LocaleService(self)
        self.api_keys = APIKeyService(self)
        self.webhooks = WebhookService(self)
        self.entries = EntryService(self)
        self.assets = AssetService(self)

    @property
    def session(self) -> requests.Session:
        """The current thread's session."""
        return self._get_session()

    def _get_session(self) -> requests.Session:
        """Get or create a thread-local requests.Session."""
        if not hasattr(self._thread_local, "session"):
            self._thread_local.session = self._create_session()
        return self._thread_local.session

    def _create_session(self) -> requests.Session:
        session = requests.Session()
        session.headers.update(
            {
                "Authorization": f"Bearer {self.config.cma_token}",
                "Content-Type": CMA_CONTENT_TYPE,
            }
        )
        return session

    def space_path(self, space_id: str | None) -> str:
        _require_id(space_id, "Space id")
        return f"/spaces/{space_id}"

    def environment_path(self, space_id: str | None) -> str:
        _require_id(self.config.environment, "Environment id")
        return f"{self.space_path(space_id)}/environments/{self.config.environment}"

    def request(
        self,
        method: str,
        path: str,
        payload: dict[str, Any] | None = None,
        version: int | None = None,
        headers: dict[str, str] | None = None,
    ) -> dict[str, Any] | None:
        """
        Make a request against the CMA.

        Args:
            method: HTTP verb
            path: Path below the base URL (e.g. "/spaces/abc/webhook_definitions")
            payload: JSON body
            version: Sent as X-Contentful-Version for optimistic locking
            headers: Extra headers

        Returns:
            Decoded JSON body, or None for an empty body

        Raises:
            ApiError: For any non-2xx response or transport failure
        """
        url = f"{self.config.base_url}{path}"
        request_headers: dict[str, str] = dict(headers or {})
        if version is not None:
            request_headers["X-Contentful-Version"] = str(version)

        if self.config.debug:
            logger.debug(
                "%s %s headers=%s body=%s",
                method,
                url,
                request_headers,
                json.dumps(payload) if payload is not None else "",
            )

        try:
            response = self._get_session().request(
                method,
                url,
                json=payload,
                headers=request_headers,
                timeout=self.config.timeout,
            )
        except requests.RequestException as exc:
            logger.debug("%s %s failed: %s", method, url, exc)
            raise error_from_exception(exc) from exc

        if self.config.debug:
            logger.debug(
                "%s %s -> %s %s", method, url, response.status_code, response.text
            )

        if not response.ok:
            raise error_from_response(response)

        if not response.content:
            return None
        return response.json()
