"""
Tab Grouper - Pipeline Errors

Classified failures raised by the grouping pipeline. The HTTP layer maps
each one to a status code and a JSON error body.
"""

from enum import Enum
from typing import Any, Optional


# Bound on how much model output is echoed back in error bodies
RAW_RESPONSE_PREVIEW_CHARS = 500


class PipelineStage(str, Enum):
    """Stages of a single grouping request, in execution order."""
    VALIDATING = "validating"
    INVOKING = "invoking"
    EXTRACTING = "extracting"
    RECOVERING = "recovering"
    VALIDATING_SHAPE = "validating_shape"
    DONE = "done"


class GroupingError(Exception):
    """Base class for classified pipeline failures."""

    status_code = 500

    def __init__(self, message: str, stage: Optional[PipelineStage] = None):
        super().__init__(message)
        self.message = message
        self.stage = stage

    def diagnostics(self) -> dict[str, Any]:
        """Extra fields attached to the JSON error body."""
        return {}

    def to_dict(self) -> dict[str, Any]:
        return {"error": self.message, **self.diagnostics()}


class InputError(GroupingError):
    """The caller's payload is invalid."""

    status_code = 400

    def __init__(self, message: str = "No tabs provided", index: Optional[int] = None):
        super().__init__(message, PipelineStage.VALIDATING)
        self.index = index

    def diagnostics(self) -> dict[str, Any]:
        if self.index is None:
            return {}
        return {"index": self.index}


class UpstreamError(GroupingError):
    """The completion service kept failing after every allowed attempt."""

    def __init__(self, last_error: BaseException, attempts: int):
        super().__init__("Something went wrong", PipelineStage.INVOKING)
        self.last_error = last_error
        self.attempts = attempts

    def __str__(self) -> str:
        return f"Upstream call failed after {self.attempts} attempts: {self.details}"

    @property
    def details(self) -> str:
        return str(self.last_error) or type(self.last_error).__name__

    def diagnostics(self) -> dict[str, Any]:
        return {"details": self.details, "attempts": self.attempts}


class ExtractionError(GroupingError):
    """The completion response matched none of the known shapes."""

    def __init__(self, response_keys: list[str]):
        super().__init__("Unexpected API response structure", PipelineStage.EXTRACTING)
        self.response_keys = response_keys

    def diagnostics(self) -> dict[str, Any]:
        return {"responseKeys": self.response_keys}


class ParseError(GroupingError):
    """No JSON value could be recovered from the model's text."""

    NO_JSON = "No valid JSON found in AI response"
    INVALID_JSON = "Failed to parse AI response as JSON"

    def __init__(self, message: str, raw_text: str):
        super().__init__(message, PipelineStage.RECOVERING)
        self.raw_response = raw_text[:RAW_RESPONSE_PREVIEW_CHARS]

    def diagnostics(self) -> dict[str, Any]:
        return {"rawResponse": self.raw_response}


class ValidationError(GroupingError):
    """The recovered JSON value is not a category mapping."""

    def __init__(self, received: Any):
        super().__init__("Invalid response structure from AI", PipelineStage.VALIDATING_SHAPE)
        self.received = received

    def diagnostics(self) -> dict[str, Any]:
        return {"received": self.received}
