"""Domain errors and failure typing."""


class PipelineError(Exception):
    """Base class for pipeline failures."""

    error_code = "PIPELINE_ERROR"


class ConfigError(PipelineError):
    """Raised for invalid or missing configuration."""

    error_code = "CONFIG_ERROR"


class ContractError(PipelineError):
    """Raised when strict output contracts are broken."""

    error_code = "CONTRACT_ERROR"


class StageError(PipelineError):
    """Raised for stage failures that should halt in strict mode."""

    error_code = "STAGE_ERROR"


class EndpointFailure(PipelineError):
    """A single attempt against one endpoint failed."""

    error_code = "ENDPOINT_FAILURE"


class FetchExhausted(PipelineError):
    """Every endpoint/attempt combination failed."""

    error_code = "FETCH_EXHAUSTED"

    def __init__(self, message: str, *, attempts: int, cause: Exception | None) -> None:
        super().__init__(message)
        self.attempts = attempts
        self.cause = cause


class MalformedRecord(PipelineError):
    error_code = "MALFORMED_RECORD"


class UnresolvableGeometry(PipelineError):
    error_code = "UNRESOLVABLE_GEOMETRY"


class NoUsableInput(PipelineError):
    """Raised when a raw export yields zero usable features."""

    error_code = "NO_USABLE_INPUT"
