class PipelineError(Exception):
    """Base class for event pipeline errors"""


class ConfigurationError(PipelineError):
    """Missing credentials or endpoints. Fatal at startup."""


class UpstreamFetchError(PipelineError):
    """An upstream request timed out, failed, or returned a non-2xx status"""


class LLMServiceError(PipelineError):
    """The language model request failed or returned no text"""


class EvaluationParseError(PipelineError):
    """The language model response was not a valid JSON object"""

    def __init__(self, message: str, raw_text: str = ""):
        super().__init__(message)
        self.raw_text = raw_text


class PersistenceError(PipelineError):
    """A store read or write failed"""


class InvalidStatusTransition(PipelineError):
    """A candidate status change that the lifecycle does not allow"""


class SubmissionError(PipelineError):
    """A public submission was invalid or rate limited. Message is user-facing."""
