"""HTTP 프레이밍 계층의 예외 계층."""

from __future__ import annotations


class HTTPError(Exception):
    """상태 코드를 가진 프로토콜 오류. 피어에게 오류 응답으로 전달된다."""

    def __init__(self, code: int, message: str) -> None:
        super().__init__(message)
        self.code    = code
        self.message = message

    def __repr__(self) -> str:
        return f"HTTPError({self.code}, {self.message!r})"


class UnexpectedEOFError(ConnectionError):
    """선언된 본문 길이를 다 받기 전에 피어가 연결을 닫았다."""


class ProtocolContractError(RuntimeError):
    """호출 규약 위반 (동시 read, 빈 write 등). 프로그래밍 오류로 취급한다."""
