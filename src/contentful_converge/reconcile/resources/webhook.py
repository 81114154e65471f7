from ...core.client import ContentfulClient, WebhookService
from ...core.models import Webhook
from ..attributes import WebhookAttributes
from ..base import EntityReconciler
from ..mapper import headers_to_pairs, pairs_to_headers


def _webhook_fields(attrs: WebhookAttributes) -> dict:
    return {
        "name": attrs.name,
        "url": attrs.url,
        "topics": list(attrs.topics),
        "headers": headers_to_pairs(attrs.headers),
        "http_basic_username": attrs.http_basic_auth_username,
        "http_basic_password": attrs.http_basic_auth_password,
    }


class WebhookReconciler(EntityReconciler[WebhookAttributes, Webhook]):
    kind = "webhook"
    attributes_model = WebhookAttributes

    def service(self, client: ContentfulClient) -> WebhookService:
        return client.webhooks

    def build(self, attrs: WebhookAttributes) -> Webhook:
        return Webhook(**_webhook_fields(attrs))

    def apply(self, attrs: WebhookAttributes, entity: Webhook) -> Webhook:
        return entity.model_copy(update=_webhook_fields(attrs))

    def refresh(
        self, attrs: WebhookAttributes, entity: Webhook
    ) -> WebhookAttributes:
        # The password is write-only and never comes back from the API.
        return attrs.model_copy(
            update={
                "version": entity.sys.version,
                "name": entity.name,
                "url": entity.url,
                "topics": list(entity.topics),
                "headers": pairs_to_headers(entity.headers),
                "http_basic_auth_username": entity.http_basic_username or "",
            }
        )
