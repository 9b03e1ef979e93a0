"""
유틸리티 포트 정의
"""
from abc import ABC, abstractmethod


class LoggerPort(ABC):

    @abstractmethod
    def info(self, message: str) -> None:
        ...

    @abstractmethod
    def warning(self, message: str) -> None:
        ...

    @abstractmethod
    def error(self, message: str) -> None:
        ...

    def debug(self, message: str) -> None:
        """기본 구현은 출력하지 않음"""

    def with_prefix(self, prefix: str) -> "LoggerPort":
        return self
