from ...core.client import ContentfulClient, SpaceService
from ...core.models import Space
from ..attributes import SpaceAttributes
from ..base import EntityReconciler


class SpaceReconciler(EntityReconciler[SpaceAttributes, Space]):
    """Spaces are top level; the space id is the identity itself."""

    kind = "space"
    attributes_model = SpaceAttributes

    def service(self, client: ContentfulClient) -> SpaceService:
        return client.spaces

    def scope(self, attrs: SpaceAttributes) -> str | None:
        return None

    def build(self, attrs: SpaceAttributes) -> Space:
        return Space(name=attrs.name, default_locale=attrs.default_locale)

    def apply(self, attrs: SpaceAttributes, entity: Space) -> Space:
        # The default locale is fixed at creation.
        return entity.model_copy(update={"name": attrs.name})

    def refresh(self, attrs: SpaceAttributes, entity: Space) -> SpaceAttributes:
        return attrs.model_copy(
            update={"version": entity.sys.version, "name": entity.name}
        )
