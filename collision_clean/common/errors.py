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


class SchemaMismatchError(ContractError):
    """Raised when the raw export is missing expected columns."""

    error_code = "SCHEMA_MISMATCH"


class DomainError(StageError):
    """Raised when a value falls outside its enumerated domain."""

    error_code = "DOMAIN_ERROR"


class JoinCardinalityError(ContractError):
    """Raised when a join would duplicate or lose case rows."""

    error_code = "JOIN_CARDINALITY"


class ExternalServiceError(StageError):
    """Raised when the geocoding service fails or answers garbage."""

    error_code = "EXTERNAL_SERVICE_ERROR"


class RetryableGeocodeError(ExternalServiceError):
    error_code = "EXTERNAL_SERVICE_RETRYABLE"
