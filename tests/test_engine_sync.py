import asyncio
import gc
import inspect
import warnings

import pytest

from fieldcheck.errors import AppError, ErrorCode, Err, Ok
from fieldcheck.validation import (
    InvalidOutcomeError,
    ValidationMode,
    deferred,
    detect_mode,
    divisible_by,
    equal_to,
    greater_than,
    invoke_all,
    is_number,
    is_string,
    make_validator,
    normalize_spec,
    read_outcome,
    validate,
)


PERSON_CONSTRAINTS = {
    "name": [is_string, equal_to("Bob")],
    "age": [is_number, greater_than(40)],
}


class TestScenarios:
    def test_valid_fields_have_no_errors(self):
        errors = validate({"name": "Bob", "age": 45}, PERSON_CONSTRAINTS)
        assert errors == {"name": None, "age": None}

    def test_failing_field_reports_its_message(self):
        errors = validate({"name": "Bob", "age": 32}, PERSON_CONSTRAINTS)
        assert errors == {"name": None, "age": "Expected 32 to be greater than 40"}

    def test_second_constraint_message_when_first_passes(self):
        validator = make_validator({
            "twenty": [divisible_by(10), greater_than(25)],
            "thirty": [divisible_by(10), greater_than(25)],
        })
        errors = validator({"twenty": 20, "thirty": 30})
        assert errors == {"twenty": "Expected 20 to be greater than 25", "thirty": None}

    def test_single_constraint_without_list(self):
        errors = validate({"name": "Sally"}, {"name": equal_to("Bob")})
        assert errors == {"name": "Expected Sally to equal Bob"}


class TestResultShape:
    def test_keys_match_constraint_spec_not_fields(self):
        errors = validate({"name": "Bob", "age": 45, "nickname": "B"}, PERSON_CONSTRAINTS)
        assert list(errors) == ["name", "age"]

    def test_field_missing_from_fields_is_validated_as_none(self):
        seen = []
        errors = validate({}, {"email": lambda key, value, fields: seen.append(value)})
        assert errors == {"email": None}
        assert seen == [None]

    def test_empty_spec_gives_empty_result(self):
        assert validate({"name": "Bob"}, {}) == {}

    def test_empty_constraint_list_passes(self):
        assert validate({"name": "Bob"}, {"name": []}) == {"name": None}

    def test_returns_plain_dict_without_awaitables(self):
        errors = validate({"name": "Bob", "age": 45}, PERSON_CONSTRAINTS)
        assert type(errors) is dict

    def test_repeated_calls_are_identical(self):
        validator = make_validator(PERSON_CONSTRAINTS)
        fields = {"name": "Sam", "age": 12}
        assert validator(fields) == validator(fields)


class TestShortCircuit:
    def test_first_message_wins(self, call_log):
        errors = validate({"x": 1}, {"x": [call_log.sync("c1", "first"), call_log.sync("c2", "second")]})
        assert errors == {"x": "first"}

    def test_later_constraints_are_still_invoked(self, call_log):
        validate({"x": 1}, {"x": [call_log.sync("c1", "first"), call_log.sync("c2", "second")]})
        assert call_log.calls == ["c1", "c2"]

    def test_every_field_invoked_in_declared_order(self, call_log):
        validate(
            {"a": 1, "b": 2},
            {"a": [call_log.sync("a1"), call_log.sync("a2")], "b": call_log.sync("b1")},
        )
        assert call_log.calls == ["a1", "a2", "b1"]

    def test_empty_string_counts_as_no_error(self):
        errors = validate({"x": 1}, {"x": [lambda k, v, f: "", lambda k, v, f: "second"]})
        assert errors == {"x": "second"}


class TestConstraintArguments:
    def test_constraint_receives_key_value_and_all_fields(self):
        received = []

        def spy(key, value, fields):
            received.append((key, value, dict(fields)))

        validate({"password": "abc", "confirm": "abd"}, {"confirm": spy})
        assert received == [("confirm", "abd", {"password": "abc", "confirm": "abd"})]

    def test_fields_are_read_only_for_constraints(self):
        def mutate(key, value, fields):
            fields["other"] = "changed"

        original = {"name": "Bob"}
        with pytest.raises(TypeError):
            validate(original, {"name": mutate})
        assert original == {"name": "Bob"}

    def test_sibling_field_access(self):
        def matches_password(key, value, fields):
            return None if value == fields["password"] else "Passwords do not match"

        errors = validate(
            {"password": "bobsdabest", "confirm": "bobadaworst"},
            {"confirm": matches_password},
        )
        assert errors == {"confirm": "Passwords do not match"}


class TestErrors:
    def test_constraint_exception_propagates(self):
        def broken(key, value, fields):
            raise RuntimeError("lookup failed")

        with pytest.raises(RuntimeError, match="lookup failed"):
            validate({"name": "Bob"}, {"name": [is_string, broken]})

    def test_non_message_outcome_is_rejected(self):
        with pytest.raises(InvalidOutcomeError) as exc_info:
            validate({"age": 3}, {"age": lambda k, v, f: 42})
        assert isinstance(exc_info.value, TypeError)
        assert exc_info.value.field == "age"
        assert exc_info.value.code == ErrorCode.E2031_INVALID_CONSTRAINT_OUTCOME

    def test_constraint_exception_closes_collected_coroutines(self):
        started = []

        def remote(key, value, fields):
            coroutine = asyncio.sleep(0)
            started.append(coroutine)
            return coroutine

        def broken(key, value, fields):
            raise RuntimeError("lookup failed")

        with pytest.raises(RuntimeError):
            validate({"a": 1, "b": 1}, {"a": [remote, remote], "b": broken})
        assert [inspect.getcoroutinestate(c) for c in started] == [inspect.CORO_CLOSED] * 2

    def test_constraint_exception_leaves_no_unawaited_coroutines(self):
        def broken(key, value, fields):
            raise RuntimeError("lookup failed")

        with warnings.catch_warnings(record=True) as caught:
            warnings.simplefilter("always")
            with pytest.raises(RuntimeError):
                validate({"a": 1, "b": 1}, {"a": deferred(equal_to(1)), "b": broken})
            gc.collect()
        assert not [w for w in caught if "never awaited" in str(w.message)]


class TestResultOutcomes:
    def test_ok_is_no_error(self):
        assert validate({"a": 1}, {"a": lambda k, v, f: Ok(v)}) == {"a": None}

    def test_err_with_message(self):
        assert validate({"a": 1}, {"a": lambda k, v, f: Err("Expected a string")}) == {"a": "Expected a string"}

    def test_err_with_app_error_uses_its_message(self):
        error = AppError(code=ErrorCode.E2000_VALIDATION_GENERIC, message="Expected a number")
        assert validate({"a": "1"}, {"a": lambda k, v, f: Err(error)}) == {"a": "Expected a number"}


class TestBuildingBlocks:
    def test_read_outcome(self):
        assert read_outcome("a", None) is None
        assert read_outcome("a", "") is None
        assert read_outcome("a", "bad") == "bad"
        with pytest.raises(InvalidOutcomeError):
            read_outcome("a", False)

    def test_invoke_all_and_detect_mode_sync(self):
        outcomes = invoke_all({"name": "Bob"}, normalize_spec(PERSON_CONSTRAINTS))
        assert list(outcomes) == ["name", "age"]
        assert len(outcomes["name"]) == 2
        assert detect_mode(outcomes) is ValidationMode.SYNC
