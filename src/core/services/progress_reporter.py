"""
세션별 진행률 콜백 레지스트리
"""
import threading
from contextlib import contextmanager
from typing import Callable, Dict, Iterator, Optional

from core.domain.models import ProgressEvent, SessionState
from core.ports.utility_ports import LoggerPort

ProgressCallback = Callable[[ProgressEvent], None]


class ProgressReporter:
    """
    session_id -> 콜백 레지스트리

    - 세션마다 진행률은 감소하지 않음 (이전 값보다 작으면 이전 값 유지)
    - 콜백 예외는 경고 로그만 남기고 세션 진행에 영향을 주지 않음
    """

    def __init__(self, logger: Optional[LoggerPort] = None):
        self.logger = logger
        self._callbacks: Dict[str, ProgressCallback] = {}
        self._last_percentage: Dict[str, int] = {}
        self._lock = threading.Lock()

    def register(self, session_id: str, callback: ProgressCallback) -> None:
        with self._lock:
            self._callbacks[session_id] = callback
        if self.logger:
            self.logger.debug(f"진행률 콜백 등록: {session_id}")

    def unregister(self, session_id: str, owner: Optional[ProgressCallback] = None) -> None:
        """
        세션 등록 해제

        owner를 주면 현재 등록된 콜백이 owner일 때만 해제합니다.
        (같은 ID로 나중에 등록한 실행의 콜백/진행률은 유지)
        """
        with self._lock:
            current = self._callbacks.get(session_id)
            if owner is not None and current is not owner:
                return
            removed = self._callbacks.pop(session_id, None)
            self._last_percentage.pop(session_id, None)
        if removed is not None and self.logger:
            self.logger.debug(f"진행률 콜백 해제: {session_id}")

    def is_registered(self, session_id: str) -> bool:
        with self._lock:
            return session_id in self._callbacks

    def last_percentage(self, session_id: str) -> Optional[int]:
        with self._lock:
            return self._last_percentage.get(session_id)

    @contextmanager
    def registered(
        self, session_id: str, callback: Optional[ProgressCallback] = None
    ) -> Iterator["ProgressReporter"]:
        """세션 범위 등록 (어떤 경로로 끝나든 해제 보장)"""
        if callback is not None:
            self.register(session_id, callback)
        try:
            yield self
        finally:
            if callback is not None:
                self.unregister(session_id, owner=callback)
            else:
                with self._lock:
                    if session_id not in self._callbacks:
                        self._last_percentage.pop(session_id, None)

    def report(
        self,
        session_id: str,
        percentage: int,
        message: str,
        state: Optional[SessionState] = None,
    ) -> ProgressEvent:
        with self._lock:
            value = max(0, min(100, int(percentage)))
            value = max(value, self._last_percentage.get(session_id, 0))
            self._last_percentage[session_id] = value
            callback = self._callbacks.get(session_id)

        event = ProgressEvent(session_id=session_id, percentage=value, message=message, state=state)
        if callback is not None:
            try:
                callback(event)
            except Exception as e:
                if self.logger:
                    self.logger.warning(f"진행률 콜백 오류 ({session_id}): {e}")
        return event
