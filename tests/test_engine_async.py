import asyncio
import gc
import inspect

import pytest

from fieldcheck.validation import (
    InvalidOutcomeError,
    ValidationMode,
    deferred,
    detect_mode,
    equal_to,
    greater_than,
    invoke_all,
    less_than,
    make_validator,
    normalize_spec,
    settle_field,
    validate,
)


class TestScenarios:
    @pytest.mark.asyncio
    async def test_async_constraints_report_each_field(self):
        errors = await validate(
            {"name": "Sam", "age": 30},
            {"name": deferred(equal_to("Bob")), "age": deferred(greater_than(40))},
        )
        assert errors == {
            "name": "Expected Sam to equal Bob",
            "age": "Expected 30 to be greater than 40",
        }

    @pytest.mark.asyncio
    async def test_multiple_async_constraints_per_field(self):
        errors = await validate(
            {"age": 20},
            {"age": [deferred(greater_than(10)), deferred(less_than(15))]},
        )
        assert errors == {"age": "Expected 20 to be less than 15"}

    @pytest.mark.asyncio
    async def test_plain_async_functions_as_constraints(self):
        async def at_least_30(key, value, fields):
            return "Fails" if value < 30 else None

        errors = await validate({"name": "Sam", "age": 35}, {"name": deferred(equal_to("Bob")), "age": at_least_30})
        assert errors == {"name": "Expected Sam to equal Bob", "age": None}


class TestOrderOverSpeed:
    @pytest.mark.asyncio
    async def test_declared_order_beats_completion_order(self, call_log):
        validator = make_validator({
            "x": [call_log.delayed("slow", "slow failure", delay=0.05), call_log.delayed("fast", "fast failure")],
        })
        errors = await validator({"x": 1})
        assert errors == {"x": "slow failure"}
        assert call_log.calls.index("fast:done") < call_log.calls.index("slow:done")

    @pytest.mark.asyncio
    async def test_waits_for_every_outcome_of_a_field(self, call_log):
        await validate({"x": 1}, {"x": [call_log.delayed("c1", "failed"), call_log.delayed("c2", delay=0.02)]})
        assert "c2:done" in call_log.calls


class TestModeUniformity:
    @pytest.mark.asyncio
    async def test_one_deferred_outcome_makes_whole_call_awaitable(self, call_log):
        result = validate(
            {"a": 1, "b": 2},
            {"a": call_log.sync("a", "sync failure"), "b": call_log.delayed("b")},
        )
        assert inspect.isawaitable(result)
        assert await result == {"a": "sync failure", "b": None}

    @pytest.mark.asyncio
    async def test_sync_field_in_async_call_uses_first_message(self):
        errors = await validate(
            {"a": 1, "b": 2},
            {"a": [lambda k, v, f: None, lambda k, v, f: "second"], "b": deferred(equal_to(2))},
        )
        assert errors == {"a": "second", "b": None}

    @pytest.mark.asyncio
    async def test_mixed_sync_and_async_constraints_in_one_field(self):
        errors = await validate(
            {"age": 5},
            {"age": [deferred(greater_than(1)), lambda k, v, f: "too young", deferred(greater_than(10))]},
        )
        assert errors == {"age": "too young"}

    def test_detect_mode_async(self):
        async def pending(key, value, fields):
            return None

        outcomes = invoke_all({"a": 1}, normalize_spec({"a": [lambda k, v, f: None, pending]}))
        assert detect_mode(outcomes) is ValidationMode.ASYNC
        # Close the never-awaited coroutine
        outcomes["a"][1].awaitable.close()


class TestEagerInvocation:
    @pytest.mark.asyncio
    async def test_async_constraints_start_before_result_is_awaited(self, call_log):
        pending = validate({"x": 1}, {"x": call_log.delayed("remote", delay=0.01)})
        await asyncio.sleep(0)
        assert call_log.calls == ["remote:start"]
        assert await pending == {"x": None}

    @pytest.mark.asyncio
    async def test_all_fields_invoked_before_any_settles(self, call_log):
        await validate(
            {"a": 1, "b": 2},
            {"a": call_log.delayed("a", delay=0.01), "b": call_log.delayed("b")},
        )
        assert call_log.calls[:2] == ["a:start", "b:start"]

    def test_without_running_loop_result_can_be_run_later(self):
        result = validate({"name": "Sam"}, {"name": deferred(equal_to("Bob"))})
        assert inspect.isawaitable(result)
        assert asyncio.run(result) == {"name": "Expected Sam to equal Bob"}

    @pytest.mark.asyncio
    async def test_concurrent_calls_do_not_interfere(self):
        validator = make_validator({"age": [deferred(greater_than(10)), deferred(less_than(15))]})
        first, second = await asyncio.gather(validator({"age": 20}), validator({"age": 12}))
        assert first == {"age": "Expected 20 to be less than 15"}
        assert second == {"age": None}


class TestErrors:
    @pytest.mark.asyncio
    async def test_failing_deferred_rejects_whole_call(self):
        async def broken(key, value, fields):
            raise ConnectionError("service unavailable")

        pending = validate({"a": 1, "b": 2}, {"a": deferred(equal_to(1)), "b": broken})
        with pytest.raises(ConnectionError, match="service unavailable"):
            await pending

    @pytest.mark.asyncio
    async def test_invalid_sync_outcome_rejects_async_call(self):
        pending = validate({"a": 1, "b": 2}, {"a": lambda k, v, f: 3.5, "b": deferred(equal_to(2))})
        with pytest.raises(InvalidOutcomeError):
            await pending

    @pytest.mark.asyncio
    async def test_invalid_settled_outcome_is_rejected(self):
        async def returns_number(key, value, fields):
            return 1

        with pytest.raises(InvalidOutcomeError):
            await validate({"a": 1}, {"a": returns_number})

    @pytest.mark.asyncio
    async def test_started_task_errors_are_retrieved_after_sync_failure(self):
        async def unreachable(key, value, fields):
            raise ConnectionError("service unavailable")

        def broken(key, value, fields):
            raise RuntimeError("lookup failed")

        loop = asyncio.get_running_loop()
        reported = []
        previous = loop.get_exception_handler()
        loop.set_exception_handler(lambda _, context: reported.append(context))
        try:
            with pytest.raises(RuntimeError):
                validate({"a": 1, "b": 1}, {"a": unreachable, "b": broken})
            await asyncio.sleep(0.01)
            gc.collect()
        finally:
            loop.set_exception_handler(previous)
        assert reported == []


class TestSettleField:
    @pytest.mark.asyncio
    async def test_settle_field_picks_declared_order(self, call_log):
        spec = normalize_spec({"x": [call_log.delayed("c1", "one", delay=0.02), call_log.delayed("c2", "two")]})
        outcomes = invoke_all({"x": 1}, spec)
        assert await settle_field(outcomes["x"]) == "one"
