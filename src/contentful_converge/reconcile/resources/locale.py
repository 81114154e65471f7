from ...core.client import ContentfulClient, LocaleService
from ...core.models import Locale
from ..attributes import LocaleAttributes
from ..base import EntityReconciler


def _locale_fields(attrs: LocaleAttributes) -> dict:
    return {
        "name": attrs.name,
        "code": attrs.code,
        "fallback_code": attrs.fallback_code,
        "optional": attrs.optional,
        "cda": attrs.cda,
        "cma": attrs.cma,
    }


class LocaleReconciler(EntityReconciler[LocaleAttributes, Locale]):
    kind = "locale"
    attributes_model = LocaleAttributes

    def service(self, client: ContentfulClient) -> LocaleService:
        return client.locales

    def build(self, attrs: LocaleAttributes) -> Locale:
        return Locale(**_locale_fields(attrs))

    def apply(self, attrs: LocaleAttributes, entity: Locale) -> Locale:
        return entity.model_copy(update=_locale_fields(attrs))

    def refresh(self, attrs: LocaleAttributes, entity: Locale) -> LocaleAttributes:
        return attrs.model_copy(
            update={
                "version": entity.sys.version,
                "name": entity.name,
                "code": entity.code,
                "fallback_code": entity.fallback_code or "",
                "optional": entity.optional,
                "cda": entity.cda,
                "cma": entity.cma,
            }
        )
