"""Pydantic models for Contentful Management API entities.

These mirror the CMA wire shapes (camelCase aliases) and are what the
collaborator returns from every verb.  All models are frozen; reconcilers
derive modified copies with ``model_copy(update=...)``.
"""

from __future__ import annotations

from typing import Any, Protocol

from pydantic import BaseModel, ConfigDict, Field

_WIRE = ConfigDict(frozen=True, populate_by_name=True)


class LinkSys(BaseModel):
    id: str
    type: str = "Link"
    link_type: str | None = Field(default=None, alias="linkType")

    model_config = _WIRE


class Link(BaseModel):
    """Reference to another entity (``{"sys": {"type": "Link", ...}}``)."""

    sys: LinkSys

    model_config = _WIRE

    @classmethod
    def to(cls, link_type: str, entity_id: str) -> Link:
        return cls(sys=LinkSys(id=entity_id, link_type=link_type))

    @property
    def id(self) -> str:
        return self.sys.id


class Sys(BaseModel):
    """System metadata attached to every entity.

    ``version`` is 0 for an entity that does not exist remotely yet; the
    collaborator uses that to choose create over update.
    """

    id: str | None = None
    type: str | None = None
    version: int = 0
    space: Link | None = None
    environment: Link | None = None
    content_type: Link | None = Field(default=None, alias="contentType")
    published_at: str | None = Field(default=None, alias="publishedAt")
    archived_at: str | None = Field(default=None, alias="archivedAt")
    updated_at: str | None = Field(default=None, alias="updatedAt")

    model_config = _WIRE

    @property
    def space_id(self) -> str | None:
        return self.space.id if self.space else None

    @property
    def content_type_id(self) -> str | None:
        return self.content_type.id if self.content_type else None

    @property
    def is_published(self) -> bool:
        return bool(self.published_at)

    @property
    def is_archived(self) -> bool:
        return bool(self.archived_at)


class HasSys(Protocol):
    """Anything carrying CMA system metadata."""

    @property
    def sys(self) -> Sys: ...


class Space(BaseModel):
    sys: Sys = Field(default_factory=Sys)
    name: str
    default_locale: str | None = Field(default=None, alias="defaultLocale")

    model_config = _WIRE


class Environment(BaseModel):
    sys: Sys = Field(default_factory=Sys)
    name: str

    model_config = _WIRE


class Locale(BaseModel):
    sys: Sys = Field(default_factory=Sys)
    name: str
    code: str
    fallback_code: str | None = Field(default=None, alias="fallbackCode")
    optional: bool = False
    cda: bool = Field(default=True, alias="contentDeliveryApi")
    cma: bool = Field(default=False, alias="contentManagementApi")

    model_config = _WIRE


class APIKey(BaseModel):
    sys: Sys = Field(default_factory=Sys)
    name: str
    description: str | None = None
    access_token: str | None = Field(default=None, alias="accessToken")

    model_config = _WIRE


class WebhookHeader(BaseModel):
    key: str
    value: str

    model_config = _WIRE


class Webhook(BaseModel):
    sys: Sys = Field(default_factory=Sys)
    name: str
    url: str
    topics: list[str] = Field(default_factory=list)
    headers: list[WebhookHeader] = Field(default_factory=list)
    http_basic_username: str | None = Field(
        default=None, alias="httpBasicUsername"
    )
    http_basic_password: str | None = Field(
        default=None, alias="httpBasicPassword"
    )

    model_config = _WIRE


class Entry(BaseModel):
    """A piece of content.  ``fields`` maps field id -> locale -> value."""

    sys: Sys = Field(default_factory=Sys)
    locale: str | None = Field(default=None, exclude=True)
    fields: dict[str, dict[str, Any]] = Field(default_factory=dict)

    model_config = _WIRE


class ImageDetails(BaseModel):
    width: int
    height: int

    model_config = _WIRE


class FileDetails(BaseModel):
    size: int
    image: ImageDetails | None = None

    model_config = _WIRE


class File(BaseModel):
    """File descriptor stored per locale on an asset."""

    file_name: str = Field(alias="fileName")
    content_type: str = Field(alias="contentType")
    url: str | None = None
    upload: str | None = None
    upload_from: Link | None = Field(default=None, alias="uploadFrom")
    details: FileDetails | None = None

    model_config = _WIRE


class AssetFields(BaseModel):
    title: dict[str, str] = Field(default_factory=dict)
    description: dict[str, str] = Field(default_factory=dict)
    file: dict[str, File] = Field(default_factory=dict)

    model_config = _WIRE


class Asset(BaseModel):
    """A media file plus localized title and description.

    ``locale`` names the locale under which the file descriptor is stored;
    it is local bookkeeping and never sent on the wire.
    """

    sys: Sys = Field(default_factory=Sys)
    locale: str | None = Field(default=None, exclude=True)
    fields: AssetFields = Field(default_factory=AssetFields)

    model_config = _WIRE


def to_payload(entity: BaseModel) -> dict[str, Any]:
    """Serialize an entity for a write request (``sys`` is never sent)."""
    payload = entity.model_dump(
        by_alias=True, exclude_none=True, exclude={"sys"}
    )
    if isinstance(entity, Entry):
        # Field content is user data; nulls inside it are kept.
        payload["fields"] = entity.fields
    return payload
