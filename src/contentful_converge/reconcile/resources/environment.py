from ...core.client import ContentfulClient, EnvironmentService
from ...core.models import Environment
from ..attributes import EnvironmentAttributes
from ..base import EntityReconciler


class EnvironmentReconciler(EntityReconciler[EnvironmentAttributes, Environment]):
    kind = "environment"
    attributes_model = EnvironmentAttributes

    def service(self, client: ContentfulClient) -> EnvironmentService:
        return client.environments

    def build(self, attrs: EnvironmentAttributes) -> Environment:
        return Environment(name=attrs.name)

    def apply(
        self, attrs: EnvironmentAttributes, entity: Environment
    ) -> Environment:
        return entity.model_copy(update={"name": attrs.name})

    def refresh(
        self, attrs: EnvironmentAttributes, entity: Environment
    ) -> EnvironmentAttributes:
        return attrs.model_copy(
            update={
                "version": entity.sys.version,
                "space_id": entity.sys.space_id or attrs.space_id,
                "name": entity.name,
            }
        )
