"""Error types raised by the overlay harness."""

from __future__ import annotations

from typing import Any, Dict, Optional


class HarnessError(Exception):
    def __init__(
        self,
        message: str,
        *,
        code: str = "HARNESS_ERROR",
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message)
        self.code = code
        self.details = details or {}


class PollTimeoutError(HarnessError, TimeoutError):
    """A bounded wait elapsed before its condition was met."""

    def __init__(
        self,
        subject: str,
        description: str,
        *,
        timeout_ms: int,
        attempts: int,
        last_value: Any = None,
        last_error: Optional[BaseException] = None,
    ):
        message = f"{description} for {subject} (timed out after {timeout_ms} ms, {attempts} attempts)"
        if last_error is not None:
            message += f"; last sampling error: {last_error}"
        super().__init__(
            message,
            code="TIMEOUT",
            details={"subject": subject, "timeout_ms": timeout_ms, "attempts": attempts},
        )
        self.subject = subject
        self.description = description
        self.timeout_ms = timeout_ms
        self.attempts = attempts
        self.last_value = last_value
        self.last_error = last_error


class FatalSampleError(HarnessError):
    """Sampling failure that must abort a poll instead of being retried."""


class MissingTargetError(FatalSampleError):
    def __init__(self, field_id: str):
        super().__init__(
            f"Could not find element '{field_id}'",
            code="TARGET_NOT_FOUND",
            details={"field_id": field_id},
        )
        self.field_id = field_id


class CapabilityUnavailableError(FatalSampleError):
    def __init__(self, capability: str, *, field_id: Optional[str] = None):
        subject = f" while inspecting '{field_id}'" if field_id else ""
        super().__init__(
            f"{capability} is not supported{subject}",
            code="CAPABILITY_UNAVAILABLE",
            details={"capability": capability, "field_id": field_id},
        )
        self.capability = capability


class ModelNotReadyError(HarnessError):
    def __init__(self, attempts: int):
        super().__init__(
            f"Model did not become ready after {attempts} attempts",
            code="MODEL_NOT_READY",
            details={"attempts": attempts},
        )

