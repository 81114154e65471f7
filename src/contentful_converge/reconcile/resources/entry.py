"""Entry reconciler: localized fields plus the publish/archive lifecycle."""

import logging

from ...core.client import ContentfulClient, EntryService
from ...core.models import Entry, Link, Sys
from ..attributes import EntryAttributes, EntryField
from ..base import EntityReconciler
from ..lifecycle import LifecycleStateMachine
from ..mapper import LocalizedFieldMapper, filter_locales

logger = logging.getLogger(__name__)


def ordered_like(
    fields: list[EntryField], declared: list[EntryField]
) -> list[EntryField]:
    """Sort remote fields into declared order; undeclared ones go last."""
    position = {(f.id, f.locale): i for i, f in enumerate(declared)}
    return sorted(
        fields, key=lambda f: position.get((f.id, f.locale), len(position))
    )


class EntryReconciler(EntityReconciler[EntryAttributes, Entry]):
    """
    Create/Read/Update/Delete for entries.

    Field content is a string on the declarative side; JSON content (rich
    text, links, lists) is decoded before it is sent, anything else is sent
    as a plain string.
    """

    kind = "entry"
    attributes_model = EntryAttributes

    def __init__(self, lifecycle: LifecycleStateMachine | None = None) -> None:
        self.mapper = LocalizedFieldMapper(decode_content=True)
        self.lifecycle = lifecycle or LifecycleStateMachine()

    def service(self, client: ContentfulClient) -> EntryService:
        return client.entries

    def build(self, attrs: EntryAttributes) -> Entry:
        return Entry(
            sys=Sys(
                id=attrs.entry_id,
                content_type=Link.to("ContentType", attrs.contenttype_id),
            ),
            locale=attrs.locale,
            fields=self.mapper.entry_fields_to_nested(attrs.field),
        )

    def apply(self, attrs: EntryAttributes, entity: Entry) -> Entry:
        return entity.model_copy(
            update={
                "locale": attrs.locale,
                "fields": self.mapper.entry_fields_to_nested(attrs.field),
            }
        )

    def after_upsert(
        self, client: ContentfulClient, attrs: EntryAttributes, entity: Entry
    ) -> Entry:
        service = self.service(client)
        entity = self.lifecycle.converge(
            service, attrs.space_id, entity, attrs.published, attrs.archived
        )
        return service.get(attrs.space_id, entity.sys.id)

    def refresh(self, attrs: EntryAttributes, entity: Entry) -> EntryAttributes:
        locales = {f.locale for f in attrs.field} or None
        fields = self.mapper.nested_to_entry_fields(
            filter_locales(entity.fields, locales)
        )
        return attrs.model_copy(
            update={
                "version": entity.sys.version,
                "space_id": entity.sys.space_id or attrs.space_id,
                "contenttype_id": entity.sys.content_type_id
                or attrs.contenttype_id,
                "field": ordered_like(fields, attrs.field),
                **lifecycle_flags(entity.sys, attrs.published),
            }
        )


def lifecycle_flags(sys: Sys, declared_published: bool) -> dict[str, bool]:
    """Map remote lifecycle state back onto ``published``/``archived``.

    Archiving unpublishes, so an archived entity keeps the declared
    ``published`` value; otherwise both flags mirror the server.
    """
    if sys.is_archived:
        return {"published": declared_published, "archived": True}
    return {"published": sys.is_published, "archived": False}
