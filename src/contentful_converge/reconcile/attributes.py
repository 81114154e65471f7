"""Flat declarative attribute sets, one model per resource kind.

These are the shapes the declarative layer reads and writes.  They are
decoded once from plain dicts at the boundary (``model_validate``) so
reconcilers only ever see typed structures.

Common fields:

- ``id``: resource identity, the join key between declared and remote
  state.  ``None`` until Create succeeds; cleared by Read on drift.
- ``version``: last ``sys.version`` seen, computed.
"""

from __future__ import annotations

from pydantic import BaseModel, Field


class _Attributes(BaseModel):
    id: str | None = None
    version: int | None = None

    model_config = {"frozen": True}


class SpaceAttributes(_Attributes):
    name: str
    default_locale: str = "en"


class EnvironmentAttributes(_Attributes):
    space_id: str
    name: str


class LocaleAttributes(_Attributes):
    space_id: str
    name: str
    code: str
    fallback_code: str = "en-US"
    optional: bool = False
    cda: bool = True
    cma: bool = False


class APIKeyAttributes(_Attributes):
    space_id: str
    name: str
    description: str = ""
    access_token: str | None = None


class WebhookAttributes(_Attributes):
    space_id: str
    name: str
    url: str
    http_basic_auth_username: str = ""
    http_basic_auth_password: str = ""
    headers: dict[str, str] = Field(default_factory=dict)
    topics: list[str] = Field(min_length=1)


# ---------------------------------------------------------------------------
# Localized content
# ---------------------------------------------------------------------------


class EntryField(BaseModel):
    """One (field id, locale, content) triple of an entry.

    ``content`` is always a string here; JSON-looking content (e.g. rich
    text) is decoded when the entry payload is built.
    """

    id: str
    content: str
    locale: str

    model_config = {"frozen": True}


class LocalizedText(BaseModel):
    content: str
    locale: str

    model_config = {"frozen": True}


class ImageAttribute(BaseModel):
    width: int
    height: int

    model_config = {"frozen": True}


class FileDetailsAttribute(BaseModel):
    size: int
    image: ImageAttribute | None = None

    model_config = {"frozen": True}


class AssetFileAttribute(BaseModel):
    """File block of an asset.

    ``url`` and ``upload_from`` are filled from the server after processing.
    """

    file_name: str
    content_type: str
    upload: str | None = None
    url: str | None = None
    upload_from: str | None = None
    details: FileDetailsAttribute | None = None

    model_config = {"frozen": True}


class AssetFieldsAttribute(BaseModel):
    title: list[LocalizedText] = Field(default_factory=list)
    description: list[LocalizedText] = Field(default_factory=list)
    file: AssetFileAttribute

    model_config = {"frozen": True}


class EntryAttributes(_Attributes):
    entry_id: str
    space_id: str
    contenttype_id: str
    locale: str
    field: list[EntryField] = Field(default_factory=list)
    published: bool
    archived: bool


class AssetAttributes(_Attributes):
    asset_id: str
    space_id: str
    locale: str
    fields: AssetFieldsAttribute
    published: bool
    archived: bool
