"""Tests for AssetReconciler: processing, settling and lifecycle."""

from unittest.mock import MagicMock

import pytest
from pydantic import ValidationError

from contentful_converge.core.errors import ApiError, ErrorKind
from contentful_converge.reconcile.attributes import AssetAttributes, LocalizedText
from contentful_converge.reconcile.resources import AssetReconciler
from contentful_converge.reconcile.resources.asset import file_from_attribute

SPACE = "space1"


def _attrs(**overrides):
    values = {
        "asset_id": "logo",
        "space_id": SPACE,
        "locale": "en-US",
        "fields": {
            "title": [{"content": "Logo", "locale": "en-US"}],
            "description": [{"content": "Company logo", "locale": "en-US"}],
            "file": {
                "file_name": "logo.png",
                "content_type": "image/png",
                "upload": "https://example.com/logo.png",
            },
        },
        "published": False,
        "archived": False,
    }
    values.update(overrides)
    return AssetAttributes.model_validate(values)


@pytest.fixture
def sleep():
    return MagicMock()


@pytest.fixture
def reconciler(sleep):
    return AssetReconciler(settle_delay=0.5, settle_max_attempts=3, sleep=sleep)


class TestCreate:
    def test_processes_then_settles(self, reconciler, fake_cma, sleep):
        result = reconciler.create(fake_cma, _attrs())

        assert result.diagnostics == []
        assert result.attributes.id == "logo"
        assert fake_cma.assets.verbs() == ["upsert", "process", "get", "get", "get"]
        sleep.assert_called_once_with(0.5)

    def test_maps_processed_file_back(self, reconciler, fake_cma):
        result = reconciler.create(fake_cma, _attrs())

        file = result.attributes.fields.file
        assert file.url == "//images.ctfassets.net/logo/logo.png"
        assert file.upload == "https://example.com/logo.png"
        assert result.attributes.version == 2

    def test_publishes_after_settling(self, reconciler, fake_cma):
        result = reconciler.create(fake_cma, _attrs(published=True))

        assert result.diagnostics == []
        verbs = fake_cma.assets.verbs()
        assert verbs.index("process") < verbs.index("publish")
        assert result.attributes.published is True
        assert result.attributes.version == 3

    def test_published_and_archived(self, reconciler, fake_cma):
        result = reconciler.create(
            fake_cma, _attrs(published=True, archived=True)
        )

        stored = fake_cma.assets.stored(SPACE, "logo")
        assert stored.sys.is_archived
        assert result.attributes.archived is True

    def test_processing_failure_reported(self, reconciler, fake_cma):
        fake_cma.assets.fail(
            "process", ApiError(ErrorKind.TRANSPORT, "Internal Server Error")
        )

        result = reconciler.create(fake_cma, _attrs(published=True))

        assert [d.summary for d in result.diagnostics] == ["Internal Server Error"]
        assert result.attributes.id == "logo"
        assert "publish" not in fake_cma.assets.verbs()

    def test_title_and_description_localized(self, reconciler, fake_cma):
        reconciler.create(
            fake_cma,
            _attrs(
                fields={
                    "title": [
                        {"content": "Logo", "locale": "en-US"},
                        {"content": "Logo DE", "locale": "de-DE"},
                    ],
                    "file": {"file_name": "a.png", "content_type": "image/png"},
                }
            ),
        )

        stored = fake_cma.assets.stored(SPACE, "logo")
        assert stored.fields.title == {"en-US": "Logo", "de-DE": "Logo DE"}
        assert stored.fields.description == {}
        assert list(stored.fields.file) == ["en-US"]


class TestUpdate:
    def test_reprocesses_and_uses_settled_version(self, reconciler, fake_cma):
        created = reconciler.create(fake_cma, _attrs()).attributes
        changed = created.model_copy(
            update={
                "fields": created.fields.model_copy(
                    update={"title": [LocalizedText(content="New", locale="en-US")]}
                ),
                "published": True,
            }
        )

        result = reconciler.update(fake_cma, changed)

        assert result.diagnostics == []
        stored = fake_cma.assets.stored(SPACE, "logo")
        assert stored.fields.title == {"en-US": "New"}
        assert stored.sys.is_published
        assert fake_cma.assets.verbs().count("process") == 2


class TestReadDelete:
    def test_read_missing_clears_identity(self, reconciler, fake_cma):
        result = reconciler.read(fake_cma, _attrs(id="logo"))

        assert result.diagnostics == []
        assert result.attributes.id is None

    def test_delete_absent_is_success(self, reconciler, fake_cma):
        result = reconciler.delete(fake_cma, _attrs(id="logo"))

        assert result.diagnostics == []

    def test_read_filters_to_declared_locales(self, reconciler, fake_cma):
        created = reconciler.create(fake_cma, _attrs()).attributes
        stored = fake_cma.assets.stored(SPACE, "logo")
        fake_cma.assets.entities[(SPACE, "logo")] = stored.model_copy(
            update={
                "fields": stored.fields.model_copy(
                    update={"title": {"en-US": "Logo", "fr-FR": "Logo FR"}}
                )
            }
        )

        result = reconciler.read(fake_cma, created)

        assert result.attributes.fields.title == [
            LocalizedText(content="Logo", locale="en-US")
        ]


def test_file_block_is_required():
    with pytest.raises(ValidationError):
        AssetAttributes.model_validate(
            {
                "asset_id": "a",
                "space_id": SPACE,
                "locale": "en-US",
                "fields": {"title": []},
                "published": False,
                "archived": False,
            }
        )


def test_file_from_attribute_links_upload():
    attrs = _attrs(
        fields={
            "file": {
                "file_name": "a.png",
                "content_type": "image/png",
                "upload_from": "upload1",
                "details": {"size": 10, "image": {"width": 2, "height": 3}},
            }
        }
    )

    file = file_from_attribute(attrs.fields.file)

    assert file.upload_from.id == "upload1"
    assert file.upload_from.sys.link_type == "Upload"
    assert file.details.image.width == 2
