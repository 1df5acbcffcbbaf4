"""
Exception classes for inference endpoint error handling and timeout escalation.

This module defines a hierarchy of exceptions that lets callers tell failure
kinds apart:

- InferenceTimeoutError: The call's deadline elapsed (escalate and retry once)
- UpstreamError: Non-2xx HTTP response from the endpoint (transient retry only)
- EmptyResponseError: 2xx response without any extractable answer text
- TransportError: Connection-level failure before a response arrived

Soft failures (routing, synthesis) are not raised; they are carried as
values inside ``Result.err(...)``.
"""

from typing import Optional


class InferenceError(Exception):
    """
    Base exception for all inference-related errors.

    Allows catch-all handling around a remote call when the caller only
    needs to record the failure.
    """

    def __init__(
        self,
        message: str,
        workflow_id: Optional[str] = None,
        original_error: Optional[Exception] = None,
    ):
        """
        Initialize inference error.

        Args:
            message: Human-readable error message
            workflow_id: Remote workflow the call targeted
            original_error: Original exception that was wrapped
        """
        super().__init__(message)
        self.message = message
        self.workflow_id = workflow_id
        self.original_error = original_error

    def __str__(self) -> str:
        """Return formatted error message with context."""
        parts = [super().__str__()]
        if self.workflow_id:
            parts.append(f"workflow={self.workflow_id}")
        return " | ".join(parts)


class InferenceTimeoutError(InferenceError):
    """
    The deadline for one remote call elapsed and the request was aborted.

    Kept distinct from every other failure so the escalator can decide to
    retry exactly once with a longer deadline.
    """

    def __init__(
        self,
        timeout: float,
        workflow_id: Optional[str] = None,
        original_error: Optional[Exception] = None,
    ):
        super().__init__(
            f"Request timed out after {timeout:g}s",
            workflow_id=workflow_id,
            original_error=original_error,
        )
        self.timeout = timeout


class UpstreamError(InferenceError):
    """
    The inference endpoint answered with a non-2xx HTTP status.

    Carries the status and response body. Retried only by the small
    transient budget around the client, never escalated.
    """

    def __init__(
        self,
        status_code: int,
        body: str = "",
        workflow_id: Optional[str] = None,
        reason: str = "",
    ):
        message = f"OpenArena API error: {status_code}"
        if reason:
            message = f"{message} {reason}"
        super().__init__(message, workflow_id=workflow_id)
        self.status_code = status_code
        self.body = body

    def __str__(self) -> str:
        parts = [super().__str__()]
        if self.body:
            parts.append(f"body={self.body[:200]}")
        return " | ".join(parts)


class EmptyResponseError(InferenceError):
    """
    A 2xx response whose payload contains no usable answer string.

    Treated as a failure, never as a success with empty content.
    """

    def __init__(self, reason: str = "Empty response from OpenArena", workflow_id: Optional[str] = None):
        super().__init__(reason, workflow_id=workflow_id)


class TransportError(InferenceError):
    """Network-level failure (connection refused, reset, protocol error)."""

    pass


class RoutingParseError(InferenceError):
    """AI-assisted routing produced unparseable or structurally invalid output."""

    pass


class SynthesisFailure(InferenceError):
    """The secondary synthesis call failed or returned nothing usable."""

    pass
