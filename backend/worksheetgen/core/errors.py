"""Error taxonomy for the worksheet pipeline.

Form-side errors (FormValidationError, UnsupportedSourceError,
ExtractionFailure) carry a message meant to be shown to the user as-is.

Generation-side errors all derive from GenerationError. They keep a
diagnostic ``kind`` and ``detail`` for logs, but ``user_message`` is always the
same generic text: the caller never branches on the subtype.
"""

GENERATION_FAILED_MESSAGE = (
    "Failed to generate worksheet. Please check your inputs and API key."
)


class WorksheetError(Exception):
    """Base class for every error raised by worksheetgen."""


class ConfigurationError(WorksheetError):
    """Raised at startup when the process configuration is unusable."""


class FormValidationError(WorksheetError):
    """Malformed user input: bad URL, empty topic, no question type, ..."""


class UnsupportedSourceError(WorksheetError):
    """Uploaded file is too large or of a type we cannot read."""

    def __init__(self, message: str, *, reason: str = "unsupported_type"):
        super().__init__(message)
        self.reason = reason  # "unsupported_type" | "too_large"


class ExtractionFailure(WorksheetError):
    """The text-extraction collaborator could not read the file."""


class GenerationError(WorksheetError):
    kind = "generation_error"

    def __init__(self, detail: str = ""):
        super().__init__(detail or self.kind)
        self.detail = detail

    @property
    def user_message(self) -> str:
        return GENERATION_FAILED_MESSAGE


class TransportFailure(GenerationError):
    """Generation capability unreachable, timed out or returned an error."""

    kind = "transport_failure"


class SchemaViolation(GenerationError):
    """Response could not be parsed or is missing required fields."""

    kind = "schema_violation"
