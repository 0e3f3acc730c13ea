"""Discriminated success/failure results returned by the service layer.

Expected business outcomes (missing rows, ownership violations, state
machine conflicts, bad quantities) are returned, not raised, so callers can
branch on ``error.code``. Only unexpected faults propagate as exceptions.
"""

from dataclasses import dataclass
from enum import StrEnum
from typing import Generic, TypeVar

T = TypeVar("T")


class ErrorCode(StrEnum):
    NOT_FOUND = "not_found"
    FORBIDDEN = "forbidden"
    CONFLICT = "conflict"
    VALIDATION = "validation"


@dataclass(frozen=True)
class ServiceError:
    code: ErrorCode
    message: str


@dataclass(frozen=True)
class ServiceResult(Generic[T]):
    value: T | None = None
    error: ServiceError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, value: T | None = None) -> "ServiceResult[T]":
        return cls(value=value)

    @classmethod
    def failure(cls, code: ErrorCode, message: str) -> "ServiceResult[T]":
        return cls(error=ServiceError(code=code, message=message))


def not_found(message: str) -> ServiceResult:
    return ServiceResult.failure(ErrorCode.NOT_FOUND, message)


def forbidden(message: str) -> ServiceResult:
    return ServiceResult.failure(ErrorCode.FORBIDDEN, message)


def conflict(message: str) -> ServiceResult:
    return ServiceResult.failure(ErrorCode.CONFLICT, message)


def invalid(message: str) -> ServiceResult:
    return ServiceResult.failure(ErrorCode.VALIDATION, message)
