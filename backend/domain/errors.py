"""Error taxonomy for the minutes pipeline.

Every stage wraps failures from its external engine or service in one of the
stage-specific errors below. OperationCancelled is never re-wrapped: callers
treat it as a silent reset rather than an error to display.
"""

from typing import Optional

CANCELLED_MESSAGE = "Operation cancelled"
CONNECTIVITY_MESSAGE = (
    "Failed to load audio processing components. Please check your internet connection."
)
INITIALIZATION_MESSAGE = "Failed to initialize audio processing. Please try again."
CREDENTIAL_MESSAGE = "Invalid or missing OpenAI API key. Please check your environment variables."


class PipelineError(Exception):
    """Base class for all pipeline failures."""


class ConfigurationError(PipelineError):
    """Process-wide configuration is incomplete (e.g. no API key)."""


class PipelineStateError(PipelineError):
    """A stage was invoked while the coordinator could not accept it."""


class OperationCancelled(PipelineError):
    def __init__(self, message: str = CANCELLED_MESSAGE):
        super().__init__(message)


class InitializationError(PipelineError):
    """The transcoder engine failed to load."""

    def __init__(self, connectivity: bool = False, cause: Optional[BaseException] = None):
        self.connectivity = connectivity
        self.cause = cause
        super().__init__(CONNECTIVITY_MESSAGE if connectivity else INITIALIZATION_MESSAGE)


class StageError(PipelineError):
    """An external call failed during a stage; ``cause`` keeps the original."""

    prefix = "Stage failed"

    def __init__(self, cause: Optional[BaseException] = None, message: Optional[str] = None):
        self.cause = cause
        if message is None:
            message = f"{self.prefix}: {cause if cause is not None else 'Unknown error'}"
        super().__init__(message)


class ConversionError(StageError):
    prefix = "Failed to convert audio"


class TranscriptionError(StageError):
    prefix = "Failed to transcribe audio"


class AnalysisError(StageError):
    prefix = "Failed to analyze transcription"


class MalformedResponseError(AnalysisError):
    prefix = "Analysis service returned an unreadable response"


class AuthenticationError(PipelineError):
    def __init__(self, message: str = CREDENTIAL_MESSAGE, cause: Optional[BaseException] = None):
        self.cause = cause
        super().__init__(message)
