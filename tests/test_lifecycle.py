"""Tests for the publish/archive state machine and asset settling."""

from unittest.mock import MagicMock

import pytest

from contentful_converge.core.errors import ApiError, ErrorKind
from contentful_converge.core.models import Entry, Sys
from contentful_converge.reconcile.lifecycle import (
    LifecycleState,
    LifecycleStateMachine,
    Transition,
    next_archive_transition,
    next_publish_transition,
    wait_for_stable_version,
)

PUBLISHED = "2024-01-01T00:00:00.000Z"


def _sys(published=False, archived=False, version=1):
    return Sys(
        id="e1",
        version=version,
        published_at=PUBLISHED if published else None,
        archived_at=PUBLISHED if archived else None,
    )


class TestLifecycleState:
    def test_draft(self):
        assert LifecycleState.of(_sys()) is LifecycleState.DRAFT

    def test_published(self):
        assert LifecycleState.of(_sys(published=True)) is LifecycleState.PUBLISHED

    def test_archived_wins(self):
        sys = _sys(published=True, archived=True)

        assert LifecycleState.of(sys) is LifecycleState.ARCHIVED


class TestRules:
    @pytest.mark.parametrize(
        "currently, target, expected",
        [
            (False, True, Transition.PUBLISH),
            (True, False, Transition.UNPUBLISH),
            (True, True, None),
            (False, False, None),
        ],
    )
    def test_publish_rule(self, currently, target, expected):
        assert next_publish_transition(_sys(published=currently), target) == expected

    @pytest.mark.parametrize(
        "currently, target, expected",
        [
            (False, True, Transition.ARCHIVE),
            (True, False, Transition.UNARCHIVE),
            (True, True, None),
            (False, False, None),
        ],
    )
    def test_archive_rule(self, currently, target, expected):
        assert next_archive_transition(_sys(archived=currently), target) == expected


class TestConverge:
    def _seed(self, fake_cma, **sys_fields):
        return fake_cma.entries.seed("space1", Entry(sys=Sys(id="e1")), **sys_fields)

    def test_draft_to_published(self, fake_cma):
        entry = self._seed(fake_cma)

        result = LifecycleStateMachine().converge(
            fake_cma.entries, "space1", entry, published=True, archived=False
        )

        assert LifecycleState.of(result.sys) is LifecycleState.PUBLISHED
        assert fake_cma.entries.verbs() == ["publish"]

    def test_published_and_archived_from_draft_in_one_pass(self, fake_cma):
        entry = self._seed(fake_cma)

        result = LifecycleStateMachine().converge(
            fake_cma.entries, "space1", entry, published=True, archived=True
        )

        assert LifecycleState.of(result.sys) is LifecycleState.ARCHIVED
        assert fake_cma.entries.verbs() == ["publish", "archive"]

    def test_second_verb_uses_refreshed_version(self, fake_cma):
        entry = self._seed(fake_cma)

        result = LifecycleStateMachine().converge(
            fake_cma.entries, "space1", entry, published=True, archived=True
        )

        # One bump per verb; a stale version would have raised CONFLICT.
        assert result.sys.version == entry.sys.version + 2

    def test_already_converged_is_noop(self, fake_cma):
        entry = self._seed(fake_cma, published_at=PUBLISHED)

        result = LifecycleStateMachine().converge(
            fake_cma.entries, "space1", entry, published=True, archived=False
        )

        assert result is entry
        assert fake_cma.entries.calls == []

    def test_unarchive(self, fake_cma):
        entry = self._seed(fake_cma, archived_at=PUBLISHED)

        result = LifecycleStateMachine().converge(
            fake_cma.entries, "space1", entry, published=False, archived=False
        )

        assert LifecycleState.of(result.sys) is LifecycleState.DRAFT
        assert fake_cma.entries.verbs() == ["unarchive"]

    def test_first_failure_raises_without_rollback(self, fake_cma):
        entry = self._seed(fake_cma)
        fake_cma.entries.fail(
            "archive", ApiError(ErrorKind.TRANSPORT, "Service Unavailable")
        )

        with pytest.raises(ApiError, match="Service Unavailable"):
            LifecycleStateMachine().converge(
                fake_cma.entries, "space1", entry, published=True, archived=True
            )

        stored = fake_cma.entries.stored("space1", "e1")
        assert LifecycleState.of(stored.sys) is LifecycleState.PUBLISHED
        assert fake_cma.entries.verbs() == ["publish", "archive"]

    def test_publish_before_unarchive(self, fake_cma):
        entry = self._seed(fake_cma, archived_at=PUBLISHED)

        with pytest.raises(ApiError) as exc_info:
            LifecycleStateMachine().converge(
                fake_cma.entries, "space1", entry, published=True, archived=False
            )

        assert exc_info.value.kind is ErrorKind.VALIDATION
        assert fake_cma.entries.verbs() == ["publish"]


class TestWaitForStableVersion:
    def _entity(self, version):
        return Entry(sys=Sys(id="a1", version=version))

    def test_returns_when_version_repeats(self):
        fetch = MagicMock(side_effect=[self._entity(2), self._entity(2)])
        sleep = MagicMock()

        result = wait_for_stable_version(fetch, initial_delay=1.0, sleep=sleep)

        assert result.sys.version == 2
        assert fetch.call_count == 2
        sleep.assert_called_once_with(1.0)

    def test_backs_off_while_version_moves(self):
        fetch = MagicMock(
            side_effect=[self._entity(v) for v in (2, 3, 4, 4)]
        )
        sleep = MagicMock()

        result = wait_for_stable_version(
            fetch, initial_delay=0.5, backoff=2.0, sleep=sleep
        )

        assert result.sys.version == 4
        assert [c.args[0] for c in sleep.call_args_list] == [0.5, 1.0, 2.0]

    def test_gives_up_after_max_attempts(self, caplog):
        fetch = MagicMock(side_effect=[self._entity(v) for v in range(1, 10)])
        sleep = MagicMock()

        with caplog.at_level("WARNING"):
            result = wait_for_stable_version(
                fetch, initial_delay=0.1, max_attempts=3, sleep=sleep
            )

        assert result.sys.version == 4
        assert fetch.call_count == 4
        assert "still changing" in caplog.text

    def test_zero_delay_never_sleeps(self):
        fetch = MagicMock(side_effect=[self._entity(1), self._entity(1)])
        sleep = MagicMock()

        wait_for_stable_version(fetch, initial_delay=0.0, sleep=sleep)

        sleep.assert_not_called()

    def test_fetch_error_propagates(self):
        fetch = MagicMock(side_effect=ApiError(ErrorKind.NOT_FOUND, "gone"))

        with pytest.raises(ApiError):
            wait_for_stable_version(fetch, sleep=MagicMock())
