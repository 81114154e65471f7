from ...core.client import APIKeyService, ContentfulClient
from ...core.models import APIKey
from ..attributes import APIKeyAttributes
from ..base import EntityReconciler


class APIKeyReconciler(EntityReconciler[APIKeyAttributes, APIKey]):
    """Delivery API keys.  ``access_token`` is generated by the server."""

    kind = "api key"
    attributes_model = APIKeyAttributes

    def service(self, client: ContentfulClient) -> APIKeyService:
        return client.api_keys

    def build(self, attrs: APIKeyAttributes) -> APIKey:
        return APIKey(name=attrs.name, description=attrs.description)

    def apply(self, attrs: APIKeyAttributes, entity: APIKey) -> APIKey:
        return entity.model_copy(
            update={"name": attrs.name, "description": attrs.description}
        )

    def refresh(self, attrs: APIKeyAttributes, entity: APIKey) -> APIKeyAttributes:
        return attrs.model_copy(
            update={
                "version": entity.sys.version,
                "name": entity.name,
                "description": entity.description or "",
                "access_token": entity.access_token,
            }
        )
