__version__ = "0.1.0"

from fieldcheck.validation import (
    ConfigurationError,
    InvalidOutcomeError,
    ValidationResult,
    Validator,
    make_result_validator,
    make_validator,
    validate,
    validate_result,
)
