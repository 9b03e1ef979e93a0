"""
ProgressReporter 단위 테스트
"""
from unittest.mock import Mock

import pytest

from core.domain.models import SessionState
from core.services.progress_reporter import ProgressReporter


class TestProgressReporter:

    @pytest.fixture
    def logger(self):
        return Mock()

    @pytest.fixture
    def reporter(self, logger):
        return ProgressReporter(logger=logger)

    def test_delivers_events_to_registered_callback(self, reporter):
        # Given
        events = []
        reporter.register("s-1", events.append)

        # When
        reporter.report("s-1", 10, "브라우저 준비 완료", SessionState.INITIALIZING)

        # Then
        assert len(events) == 1
        assert events[0].session_id == "s-1"
        assert events[0].percentage == 10
        assert events[0].state == SessionState.INITIALIZING

    def test_percentage_is_clamped_and_non_decreasing(self, reporter):
        events = []
        reporter.register("s-1", events.append)

        reporter.report("s-1", 40, "a")
        reporter.report("s-1", 20, "b")
        reporter.report("s-1", 150, "c")

        assert [e.percentage for e in events] == [40, 40, 100]

    def test_sessions_are_independent(self, reporter):
        first, second = [], []
        reporter.register("a", first.append)
        reporter.register("b", second.append)

        reporter.report("a", 50, "a")
        reporter.report("b", 10, "b")

        assert [e.percentage for e in first] == [50]
        assert [e.percentage for e in second] == [10]

    def test_report_without_callback(self, reporter):
        event = reporter.report("nobody", 5, "조용히 무시")

        assert event.percentage == 5

    def test_callback_error_is_logged(self, reporter, logger):
        def broken(event):
            raise RuntimeError("closed socket")

        reporter.register("s-1", broken)
        reporter.report("s-1", 10, "x")

        logger.warning.assert_called_once()

    def test_registered_scope_unregisters_on_error(self, reporter):
        """어떤 경로로 끝나든 등록 해제"""
        with pytest.raises(RuntimeError):
            with reporter.registered("s-1", lambda e: None):
                assert reporter.is_registered("s-1")
                raise RuntimeError("session crashed")

        assert not reporter.is_registered("s-1")
        assert reporter.last_percentage("s-1") is None

    def test_registered_scope_keeps_later_registration(self, reporter):
        """같은 ID로 나중에 등록한 콜백은 먼저 끝난 범위가 해제하지 않음"""
        # Given
        first, second = Mock(), Mock()

        # When
        with reporter.registered("same", first):
            reporter.register("same", second)
            reporter.report("same", 40, "navigating")

        # Then
        assert reporter.is_registered("same")
        assert reporter.last_percentage("same") == 40
        reporter.report("same", 60, "extracting")
        assert second.call_count == 2
        first.assert_not_called()

    def test_unregister_with_other_owner_is_ignored(self, reporter):
        current = Mock()
        reporter.register("s-1", current)

        reporter.unregister("s-1", owner=Mock())

        assert reporter.is_registered("s-1")
