"""Mapping between flat localized attributes and nested locale-keyed values.

The declarative side describes localized content as an ordered list of
``(key, locale, content)`` triples; the CMA stores it as
``{key: {locale: value}}``.  ``LocalizedFieldMapper`` converts both ways:

1. **flatten** -- nested mapping -> ordered triples (mapping order).
2. **unflatten** -- triples -> nested mapping; later duplicates win.
3. **Content decoding** -- with ``decode_content=True`` each content
   string is JSON-decoded when it parses and kept verbatim otherwise, so a
   single string attribute can carry plain text or structured rich text.

``unflatten(flatten(m)) == m`` holds for the locales supplied on a call;
mappings built from different locale subsets are not reconciled.
"""

from __future__ import annotations

import json
from collections.abc import Iterable, Mapping
from typing import Any

from pydantic import BaseModel

from ..core.models import WebhookHeader
from .attributes import EntryField, LocalizedText


class LocalizedField(BaseModel):
    """One flat ``(key, locale, content)`` triple."""

    key: str
    locale: str
    content: Any

    model_config = {"frozen": True}


def _reject_constant(token: str) -> Any:
    raise ValueError(f"{token} is not valid JSON")


def parse_content_value(value: str) -> Any:
    """Return the JSON-decoded *value*, or *value* itself if it is not JSON.

    Only strict JSON counts: ``NaN`` and ``Infinity`` stay literal strings.
    """
    try:
        return json.loads(value, parse_constant=_reject_constant)
    except ValueError:
        return value


def render_content_value(value: Any) -> str:
    """Inverse of ``parse_content_value`` for values read from the API."""
    if isinstance(value, str):
        return value
    return json.dumps(value)


class LocalizedFieldMapper:
    """Convert between flat localized triples and nested mappings.

    Args:
        decode_content: Apply the JSON-or-literal content rule (entry fields).
    """

    def __init__(self, decode_content: bool = False) -> None:
        self._decode_content = decode_content

    def flatten(
        self, nested: Mapping[str, Mapping[str, Any]]
    ) -> list[LocalizedField]:
        fields: list[LocalizedField] = []
        for key, localized in nested.items():
            for locale, content in localized.items():
                if self._decode_content:
                    content = render_content_value(content)
                fields.append(
                    LocalizedField(key=key, locale=locale, content=content)
                )
        return fields

    def unflatten(
        self, fields: Iterable[LocalizedField]
    ) -> dict[str, dict[str, Any]]:
        nested: dict[str, dict[str, Any]] = {}
        for field in fields:
            content = field.content
            if self._decode_content and isinstance(content, str):
                content = parse_content_value(content)
            nested.setdefault(field.key, {})[field.locale] = content
        return nested

    # ------------------------------------------------------------------
    # Entry fields
    # ------------------------------------------------------------------

    def entry_fields_to_nested(
        self, fields: Iterable[EntryField]
    ) -> dict[str, dict[str, Any]]:
        return self.unflatten(
            LocalizedField(key=f.id, locale=f.locale, content=f.content)
            for f in fields
        )

    def nested_to_entry_fields(
        self, nested: Mapping[str, Mapping[str, Any]]
    ) -> list[EntryField]:
        return [
            EntryField(
                id=f.key,
                locale=f.locale,
                content=render_content_value(f.content),
            )
            for f in self.flatten(nested)
        ]


# ---------------------------------------------------------------------------
# Locale-only values (asset title / description)
# ---------------------------------------------------------------------------


def localize(texts: Iterable[LocalizedText]) -> dict[str, str]:
    """``[(content, locale), ...]`` -> ``{locale: content}``."""
    return {t.locale: t.content for t in texts}


def delocalize(mapping: Mapping[str, str]) -> list[LocalizedText]:
    """``{locale: content}`` -> ``[(content, locale), ...]``."""
    return [
        LocalizedText(content=content, locale=locale)
        for locale, content in mapping.items()
    ]


def filter_locales(
    nested: Mapping[str, Mapping[str, Any]], locales: set[str] | None
) -> dict[str, dict[str, Any]]:
    """Restrict *nested* to the active locale set.

    ``None`` keeps every locale.  Keys left with no locale are dropped.
    """
    if locales is None:
        return {k: dict(v) for k, v in nested.items()}
    result: dict[str, dict[str, Any]] = {}
    for key, localized in nested.items():
        kept = {loc: val for loc, val in localized.items() if loc in locales}
        if kept:
            result[key] = kept
    return result


# ---------------------------------------------------------------------------
# Webhook headers
# ---------------------------------------------------------------------------


def headers_to_pairs(headers: Mapping[str, str]) -> list[WebhookHeader]:
    """Header map -> pair list, sorted by key so payloads are stable."""
    return [
        WebhookHeader(key=key, value=headers[key]) for key in sorted(headers)
    ]


def pairs_to_headers(pairs: Iterable[WebhookHeader]) -> dict[str, str]:
    return {pair.key: pair.value for pair in pairs}
