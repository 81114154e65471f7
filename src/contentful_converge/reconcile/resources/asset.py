"""Asset reconciler.

After every upsert the uploaded file is processed, the asset is polled until
its version stops moving, and only then is the lifecycle applied.
"""

import logging
import time
from collections.abc import Callable

from ...core.client import AssetService, ContentfulClient
from ...core.models import (
    Asset,
    AssetFields,
    File,
    FileDetails,
    ImageDetails,
    Link,
    Sys,
)
from ..attributes import (
    AssetAttributes,
    AssetFieldsAttribute,
    AssetFileAttribute,
    FileDetailsAttribute,
    ImageAttribute,
)
from ..base import EntityReconciler
from ..lifecycle import LifecycleStateMachine, wait_for_stable_version
from ..mapper import delocalize, localize
from .entry import lifecycle_flags

logger = logging.getLogger(__name__)


def file_from_attribute(attr: AssetFileAttribute) -> File:
    details = None
    if attr.details is not None:
        image = attr.details.image
        details = FileDetails(
            size=attr.details.size,
            image=ImageDetails(width=image.width, height=image.height)
            if image
            else None,
        )
    return File(
        file_name=attr.file_name,
        content_type=attr.content_type,
        url=attr.url,
        upload=attr.upload,
        upload_from=Link.to("Upload", attr.upload_from)
        if attr.upload_from
        else None,
        details=details,
    )


def file_to_attribute(
    file: File, declared: AssetFileAttribute
) -> AssetFileAttribute:
    """Remote file -> attribute.  The upload URL is not echoed back once
    processed, so the declared one is kept."""
    details = None
    if file.details is not None:
        image = file.details.image
        details = FileDetailsAttribute(
            size=file.details.size,
            image=ImageAttribute(width=image.width, height=image.height)
            if image
            else None,
        )
    return AssetFileAttribute(
        file_name=file.file_name,
        content_type=file.content_type,
        upload=file.upload or declared.upload,
        url=file.url,
        upload_from=file.upload_from.id if file.upload_from else None,
        details=details,
    )


def _texts(mapping: dict[str, str], declared: list) -> list:
    locales = {t.locale for t in declared}
    if locales:
        mapping = {k: v for k, v in mapping.items() if k in locales}
    return delocalize(mapping)


class AssetReconciler(EntityReconciler[AssetAttributes, Asset]):
    kind = "asset"
    attributes_model = AssetAttributes

    def __init__(
        self,
        settle_delay: float = 1.0,
        settle_max_attempts: int = 5,
        settle_backoff: float = 2.0,
        lifecycle: LifecycleStateMachine | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.settle_delay = settle_delay
        self.settle_max_attempts = settle_max_attempts
        self.settle_backoff = settle_backoff
        self.lifecycle = lifecycle or LifecycleStateMachine()
        self._sleep = sleep

    def service(self, client: ContentfulClient) -> AssetService:
        return client.assets

    def _fields(self, attrs: AssetAttributes) -> AssetFields:
        return AssetFields(
            title=localize(attrs.fields.title),
            description=localize(attrs.fields.description),
            file={attrs.locale: file_from_attribute(attrs.fields.file)},
        )

    def build(self, attrs: AssetAttributes) -> Asset:
        return Asset(
            sys=Sys(id=attrs.asset_id),
            locale=attrs.locale,
            fields=self._fields(attrs),
        )

    def apply(self, attrs: AssetAttributes, entity: Asset) -> Asset:
        return entity.model_copy(
            update={"locale": attrs.locale, "fields": self._fields(attrs)}
        )

    def after_upsert(
        self, client: ContentfulClient, attrs: AssetAttributes, entity: Asset
    ) -> Asset:
        service = self.service(client)
        space_id = attrs.space_id
        asset_id = entity.sys.id

        service.process(space_id, entity)
        logger.debug("Waiting for asset %s to settle after processing", asset_id)
        entity = wait_for_stable_version(
            lambda: service.get(space_id, asset_id),
            initial_delay=self.settle_delay,
            max_attempts=self.settle_max_attempts,
            backoff=self.settle_backoff,
            sleep=self._sleep,
        )
        entity = self.lifecycle.converge(
            service, space_id, entity, attrs.published, attrs.archived
        )
        return service.get(space_id, asset_id)

    def refresh(self, attrs: AssetAttributes, entity: Asset) -> AssetAttributes:
        remote = entity.fields
        declared = attrs.fields
        remote_file = remote.file.get(attrs.locale)
        fields = AssetFieldsAttribute(
            title=_texts(remote.title, declared.title),
            description=_texts(remote.description, declared.description),
            file=file_to_attribute(remote_file, declared.file)
            if remote_file
            else declared.file,
        )
        return attrs.model_copy(
            update={
                "version": entity.sys.version,
                "space_id": entity.sys.space_id or attrs.space_id,
                "fields": fields,
                **lifecycle_flags(entity.sys, attrs.published),
            }
        )
