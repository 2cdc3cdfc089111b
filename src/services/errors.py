"""Error taxonomy shared by the pipeline services and the HTTP layer.

Every error carries the HTTP status the API answers with, so routers never
have to map exception types themselves.
"""


class PipelineError(Exception):
    """Base class for all errors surfaced to API callers."""

    status_code = 500


class ValidationError(PipelineError):
    """Bad input shape or cardinality. Raised before any side effects."""

    status_code = 400


class FetchError(PipelineError):
    """Network failure or non-2xx response from an external page or API."""

    status_code = 502


class UpstreamError(PipelineError):
    """A third-party API returned a structured error."""

    status_code = 502


class EncodeError(PipelineError):
    """An ffmpeg transform failed."""

    def __init__(self, message: str, diagnostics: str = ""):
        super().__init__(message)
        self.diagnostics = diagnostics


class GenerationTimeoutError(PipelineError, TimeoutError):
    """A polling ceiling was reached before the remote job completed."""

    status_code = 504


class ScratchIOError(PipelineError, OSError):
    """Scratch filesystem failure (disk full, permissions, missing file)."""


class StageError(PipelineError):
    """Failure of one assembly stage, wrapping the original error."""

    def __init__(self, stage: str, description: str, cause: BaseException):
        super().__init__(f"{description} failed: {cause}")
        self.stage = stage
        self.status_code = getattr(cause, "status_code", 500)
