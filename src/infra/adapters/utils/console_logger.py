"""
콘솔 로거 어댑터
"""
from typing import Optional

from core.ports.utility_ports import LoggerPort


class ConsoleLogger(LoggerPort):
    """
    콘솔 출력 로거 구현

    print로 출력하며, verbose일 때만 debug를 출력합니다.
    with_prefix()는 세션 ID 등을 붙여 출력하는 자식 로거를 돌려줍니다.
    """

    def __init__(self, verbose: bool = False, prefix: Optional[str] = None):
        self.verbose = verbose
        self.prefix = prefix

    def _emit(self, level: str, message: str) -> None:
        if self.prefix:
            print(f"[{level}] [{self.prefix}] {message}")
        else:
            print(f"[{level}] {message}")

    def info(self, message: str) -> None:
        """정보 로그"""
        self._emit("INFO", message)

    def warning(self, message: str) -> None:
        """경고 로그"""
        self._emit("WARNING", message)

    def error(self, message: str) -> None:
        """에러 로그"""
        self._emit("ERROR", message)

    def debug(self, message: str) -> None:
        if self.verbose:
            self._emit("DEBUG", message)

    def with_prefix(self, prefix: str) -> "ConsoleLogger":
        return ConsoleLogger(verbose=self.verbose, prefix=prefix)
