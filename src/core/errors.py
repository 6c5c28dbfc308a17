from __future__ import annotations

from typing import Any, Dict, Optional

from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import BaseModel


class ErrorDetail(BaseModel):
    code: str
    message: str
    details: Optional[Dict[str, Any]] = None


class AppError(Exception):
    def __init__(
        self,
        code: str,
        message: str,
        status_code: int = 400,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(message)
        self.code = code
        self.message = message
        self.status_code = status_code
        self.details = details


class NotFoundError(AppError):
    def __init__(self, message: str = "Resource not found", details: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(code="not_found", message=message, status_code=404, details=details)


class BadRequestError(AppError):
    def __init__(self, message: str = "Bad request") -> None:
        super().__init__(code="bad_request", message=message, status_code=400)


class ValidationError(AppError):
    def __init__(self, message: str, field: Optional[str] = None, **context: Any) -> None:
        details: Dict[str, Any] = dict(context)
        if field:
            details["field"] = field
        super().__init__(code="validation_error", message=message, status_code=422, details=details or None)
        self.field = field


class InvalidProfileError(AppError):
    def __init__(self, message: str = "Weight profile has no positive weights", profile_id: Optional[int] = None) -> None:
        super().__init__(
            code="invalid_profile",
            message=message,
            status_code=422,
            details={"profileId": profile_id},
        )
        self.profile_id = profile_id


class DuplicateTargetError(AppError):
    def __init__(self, branch_id: str, year_month: str) -> None:
        super().__init__(
            code="duplicate_target",
            message=f"Branch {branch_id} already has a target for {year_month}",
            status_code=409,
            details={"branchId": branch_id, "yearMonth": year_month},
        )
        self.branch_id = branch_id
        self.year_month = year_month


class TargetNotEditableError(AppError):
    def __init__(self, target_id: int, status: str) -> None:
        super().__init__(
            code="target_not_editable",
            message=f"Target {target_id} is {status} and cannot be edited",
            status_code=409,
            details={"targetId": target_id, "status": status},
        )
        self.target_id = target_id
        self.status = status


class AllocationNotFoundError(AppError):
    def __init__(self, allocation_id: int) -> None:
        super().__init__(
            code="allocation_not_found",
            message=f"Allocation {allocation_id} not found",
            status_code=404,
            details={"allocationId": allocation_id},
        )
        self.allocation_id = allocation_id


class ErrorEnvelope(BaseModel):
    error: ErrorDetail


def app_error_handler(_: Request, exc: AppError) -> JSONResponse:
    envelope = ErrorEnvelope(error=ErrorDetail(code=exc.code, message=exc.message, details=exc.details))
    return JSONResponse(status_code=exc.status_code, content=envelope.model_dump())


def validation_error_handler(_: Request, exc: RequestValidationError) -> JSONResponse:
    envelope = ErrorEnvelope(
        error=ErrorDetail(
            code="validation_error",
            message="Validation error",
            details={"errors": exc.errors()},
        )
    )
    return JSONResponse(status_code=422, content=envelope.model_dump())
