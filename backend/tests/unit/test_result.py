"""Unit tests for the Result type."""

import pytest

from partner_assistant.services.result import Result


@pytest.mark.unit
class TestResult:
    """Tests for Result construction and fallbacks."""

    def test_ok_is_truthy_and_unwraps(self):
        result = Result.ok("value")

        assert result
        assert result.is_ok
        assert result.unwrap() == "value"

    def test_err_is_falsy_and_raises_on_unwrap(self):
        result = Result.err(KeyError("missing"))

        assert not result
        with pytest.raises(KeyError):
            result.unwrap()

    def test_requires_exactly_one_side(self):
        with pytest.raises(ValueError):
            Result()

    def test_or_else_only_runs_fallback_on_error(self):
        calls = []

        def fallback(error):
            calls.append(error)
            return "fallback"

        assert Result.ok("primary").or_else(fallback) == "primary"
        assert Result.err(RuntimeError("x")).or_else(fallback) == "fallback"
        assert len(calls) == 1

    def test_unwrap_or_and_map(self):
        assert Result.err(RuntimeError("x")).unwrap_or(3) == 3
        assert Result.ok(2).map(lambda v: v * 10).unwrap() == 20
        assert not Result.err(RuntimeError("x")).map(lambda v: v * 10)
