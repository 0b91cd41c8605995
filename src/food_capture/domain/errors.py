"""Typed errors raised across the capture-to-ledger pipeline."""

from enum import Enum


class Destination(Enum):
    """Persistent collection a finished record can be committed to."""

    HISTORY = "history"
    LIBRARY = "library"
    PLAN = "plan"
    GROCERY = "grocery"
    HEALTH = "health"


class PipelineError(Exception):
    """Base class for pipeline errors."""


class CaptureError(PipelineError):
    """Camera acquisition or frame read failed."""

    PERMISSION_DENIED = "permission_denied"
    NO_DEVICE = "no_device"
    STREAM_FAILED = "stream_failed"

    def __init__(self, reason: str, message: str | None = None) -> None:
        self.reason = reason
        super().__init__(message or f"Camera unavailable: {reason}")

    @property
    def permission_denied(self) -> bool:
        return self.reason == self.PERMISSION_DENIED


class EncodeError(PipelineError):
    """Image could not be decoded, resized or encoded."""


class AnalysisError(PipelineError):
    """An analysis operation failed for a capture mode."""

    def __init__(self, mode: object, cause: BaseException | str) -> None:
        self.mode = mode
        self.cause = cause
        mode_value = getattr(mode, "value", mode)
        super().__init__(f"Analysis failed for {mode_value}: {cause}")


class CommitError(PipelineError):
    """A persistence call for one destination failed."""

    def __init__(self, destination: Destination, cause: BaseException | str) -> None:
        self.destination = destination
        self.cause = cause
        super().__init__(f"Commit to {destination.value} failed: {cause}")


class InvalidWeightError(ValueError):
    """Weight cannot be used as a rescale target or baseline."""


class InvalidTransitionError(PipelineError):
    """Operation is not allowed in the current capture state."""

    def __init__(self, operation: str, state: object) -> None:
        self.operation = operation
        self.state = state
        super().__init__(f"Cannot {operation} while {type(state).__name__}")
