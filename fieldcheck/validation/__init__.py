"""Field Validation

Validate a flat record of field values against per-field constraints.
A constraint is any callable ``(key, value, fields)`` returning None for
"no error" or a message string. When any constraint returns an awaitable the
whole call returns an awaitable.

Usage:
    from fieldcheck.validation import make_validator, is_number, greater_than

    validate_person = make_validator({
        "name": [is_string, equal_to("Bob")],
        "age": [is_number, greater_than(40)],
    })
    errors = validate_person({"name": "Bob", "age": 32})
    # {"name": None, "age": "Expected 32 to be greater than 40"}
"""
from .types import (
    AsyncConstraint,
    AsyncConstraintSpec,
    Constraint,
    ConstraintSpec,
    Fields,
    Message,
    ValidationMode,
    ValidationResult,
)
from .errors import ConfigurationError, InvalidOutcomeError
from .normalizer import normalize_constraints, normalize_spec
from .outcomes import read_outcome
from .engine import (
    Validator,
    detect_mode,
    invoke_all,
    make_validator,
    settle_field,
    select_sync,
    validate,
)
from .results import (
    ResultValidator,
    make_result_validator,
    to_result,
    validate_result,
)
from .rules import (
    Rule,
    IsType,
    is_string,
    is_number,
    is_bool,
    EqualTo,
    MatchesField,
    GreaterThan,
    LessThan,
    DivisibleBy,
    StringLength,
    NonEmpty,
    RegexPattern,
    OneOf,
    AllOf,
    AnyOf,
    Not,
    WithMessage,
    CustomRule,
    rule,
    DeferredRule,
    deferred,
    equal_to,
    greater_than,
    less_than,
    divisible_by,
    matches_field,
)
from .guards import GuardedConstraint, guarded

__all__ = [
    # Types
    "AsyncConstraint",
    "AsyncConstraintSpec",
    "Constraint",
    "ConstraintSpec",
    "Fields",
    "Message",
    "ValidationMode",
    "ValidationResult",
    # Errors
    "ConfigurationError",
    "InvalidOutcomeError",
    # Engine
    "normalize_constraints",
    "normalize_spec",
    "Validator",
    "detect_mode",
    "invoke_all",
    "make_validator",
    "read_outcome",
    "settle_field",
    "select_sync",
    "validate",
    # Result encoding
    "ResultValidator",
    "make_result_validator",
    "to_result",
    "validate_result",
    # Rules
    "Rule",
    "IsType",
    "is_string",
    "is_number",
    "is_bool",
    "EqualTo",
    "MatchesField",
    "GreaterThan",
    "LessThan",
    "DivisibleBy",
    "StringLength",
    "NonEmpty",
    "RegexPattern",
    "OneOf",
    "AllOf",
    "AnyOf",
    "Not",
    "WithMessage",
    "CustomRule",
    "rule",
    "DeferredRule",
    "deferred",
    "equal_to",
    "greater_than",
    "less_than",
    "divisible_by",
    "matches_field",
    # Guards
    "GuardedConstraint",
    "guarded",
]
