"""Result type returned by every store, service and token helper.

A ``Result`` carries a ``ResultCode`` (whose values double as HTTP status
codes), an ordered list of human readable messages and, on success, an
optional data payload. Expected failures are returned, never raised.

Usage:
    result = metadata_store.get_file_info_by_id(42)
    if not result.is_success:
        return copy_failure(result)
    record = result.data
"""

from dataclasses import dataclass, field
from enum import IntEnum
from typing import Generic, List, Optional, TypeVar, Union

T = TypeVar("T")
U = TypeVar("U")

Messages = Union[str, List[str], None]


class ResultCode(IntEnum):
    """Outcome classification. Values are the matching HTTP status codes."""

    OK = 200
    CREATED = 201
    BAD_REQUEST = 400
    UNAUTHORIZED = 401
    FORBIDDEN = 403
    NOT_FOUND = 404
    CONFLICT = 409
    SERVER_ERROR = 500


_SUCCESS_CODES = (ResultCode.OK, ResultCode.CREATED)


def _as_list(messages: Messages) -> List[str]:
    if messages is None:
        return []
    if isinstance(messages, str):
        return [messages]
    return list(messages)


@dataclass
class Result(Generic[T]):
    result_code: ResultCode = ResultCode.OK
    messages: List[str] = field(default_factory=list)
    data: Optional[T] = None

    @property
    def is_success(self) -> bool:
        return self.result_code in _SUCCESS_CODES

    def and_(self, other: "Result") -> "Result[None]":
        """Merge two outcomes into one.

        Succeeds only if both succeed. Messages are concatenated in call
        order. A failed merge keeps the classification of the first failure.
        """
        messages = self.messages + other.messages
        if self.is_success and other.is_success:
            return Result(ResultCode.OK, messages)
        code = self.result_code if not self.is_success else other.result_code
        return Result(code, messages)

    @classmethod
    def success(cls, data: Optional[T] = None, messages: Messages = None) -> "Result[T]":
        return cls(ResultCode.OK, _as_list(messages), data)

    @classmethod
    def created(cls, data: Optional[T] = None, messages: Messages = None) -> "Result[T]":
        return cls(ResultCode.CREATED, _as_list(messages), data)

    @classmethod
    def failure(cls, messages: Messages, result_code: ResultCode = ResultCode.BAD_REQUEST) -> "Result[T]":
        if result_code in _SUCCESS_CODES:
            raise ValueError(f"{result_code!r} is not a failure classification")
        return cls(result_code, _as_list(messages))

    @classmethod
    def failure_bad_request(cls, messages: Messages) -> "Result[T]":
        return cls.failure(messages, ResultCode.BAD_REQUEST)

    @classmethod
    def failure_unauthorized(cls, messages: Messages) -> "Result[T]":
        return cls.failure(messages, ResultCode.UNAUTHORIZED)

    @classmethod
    def failure_forbidden(cls, messages: Messages) -> "Result[T]":
        return cls.failure(messages, ResultCode.FORBIDDEN)

    @classmethod
    def failure_not_found(cls, messages: Messages) -> "Result[T]":
        return cls.failure(messages, ResultCode.NOT_FOUND)

    @classmethod
    def failure_conflict(cls, messages: Messages) -> "Result[T]":
        return cls.failure(messages, ResultCode.CONFLICT)

    @classmethod
    def fatal(cls, messages: Messages = "An error occurred") -> "Result[T]":
        return cls.failure(messages, ResultCode.SERVER_ERROR)


def copy_failure(result: Result[T]) -> Result[U]:
    """Re-wrap a failed result for a different payload type.

    Keeps the classification and messages, drops the payload.
    """
    if result.is_success:
        raise ValueError("copy_failure called with a successful result")
    return Result(result.result_code, list(result.messages))
