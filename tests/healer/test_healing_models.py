"""Tests for the heal plugin data models."""

import pytest

from src.healer.core.models import (
    FailedStep, HealOutcome, HealResult, HealSuggestion, RunSummary, Step, TestCase,
    TestRun, UnhealedReason
)


class TestStep:
    """Test rendering of steps as code."""

    def test_to_code(self):
        assert Step(name="click", args=("Submit",)).to_code() == 'TM.click("Submit")'

    def test_to_code_with_several_args(self):
        step = Step(name="fillField", args=("#user", "bob"), actor="I")
        assert str(step) == 'I.fillField("#user", "bob")'

    def test_to_code_with_object_locator(self):
        assert Step(name="click", args=({"css": "#go"},)).to_code() == 'TM.click({"css": "#go"})'

    def test_to_code_keeps_non_ascii_text(self):
        assert Step(name="click", args=("Café",)).to_code() == 'TM.click("Café")'


class TestTestCase:
    def test_scenario_name(self):
        assert TestCase(title="Login flow @smoke @fast").scenario_name == "Login flow"


class TestHealResult:
    """Test heal results."""

    def test_unhealed_reraises_original_error(self):
        error = RuntimeError("Element not found")
        result = HealResult.unhealed(error, UnhealedReason.NO_CANDIDATES)

        assert not result.healed
        assert result.outcome == HealOutcome.UNHEALED
        with pytest.raises(RuntimeError) as exc_info:
            result.raise_for_outcome()
        assert exc_info.value is error

    def test_healed_swallows_error(self):
        suggestion = HealSuggestion(test=TestCase(title="t"), step=Step(name="click"), snippet="TM.click('a')")
        result = HealResult.from_suggestion(RuntimeError("x"), suggestion)

        assert result.healed
        result.raise_for_outcome()


class TestRunState:
    """Test per-run tracking state."""

    def test_start_test_resets(self):
        run = TestRun(current_step=Step(name="click"), healed_steps=3)
        test = TestCase(title="Next")

        run.start_test(test)

        assert run.current_test is test
        assert run.current_step is None
        assert run.healed_steps == 0

    def test_failed_step(self):
        failed = FailedStep(step=Step(name="click", args=("Go",)), error=ValueError("gone"))

        assert failed.code == 'TM.click("Go")'
        assert failed.error_message == "gone"

    def test_summary_count(self):
        suggestion = HealSuggestion(test=TestCase(title="t"), step=Step(name="click"), snippet="TM.click('a')")
        assert RunSummary(suggestions=[suggestion, suggestion]).healed_count == 2

    def test_suggestion_to_dict(self):
        suggestion = HealSuggestion(test=TestCase(title="t"), step=Step(name="click", args=("a",)),
                                    snippet="TM.click('#a')")
        data = suggestion.to_dict()

        assert data["test"] == "t"
        assert data["step"] == 'TM.click("a")'
        assert data["snippet"] == "TM.click('#a')"
