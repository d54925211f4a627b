"""
Unit tests for the LessonEngine facade.
"""

import pytest

from src.engine.errors import ContractViolation, GatewayUnavailable, InvalidInput
from src.engine.models import ChallengeStatus, Difficulty
from tests.fakes import adaptation_response, evaluation_response, plan_response


class TestGeneratePlan:
    def test_linear_algebra_end_to_end(self, lesson_engine, fake_gateway, test_settings):
        fake_gateway.queue(plan_response(3, "From vectors to linear maps."))

        draft = lesson_engine.generate_plan("Linear Algebra", num_challenges=3)

        assert draft.topic == "Linear Algebra"
        assert draft.description == "From vectors to linear maps."
        assert [c.order_index for c in draft.challenges] == [0, 1, 2]
        assert all(c.title and c.description and c.success_criteria for c in draft.challenges)
        assert draft.metadata.difficulty == Difficulty.BEGINNER
        assert draft.metadata.tags == ["linear algebra"]
        assert draft.metadata.model_used == test_settings.ai_model
        assert draft.prompt_used.startswith("Topic: Linear Algebra")

    def test_count_mismatch_is_a_contract_violation(self, lesson_engine, fake_gateway):
        fake_gateway.queue(plan_response(4))
        with pytest.raises(ContractViolation, match="Expected 3 challenges"):
            lesson_engine.generate_plan("Linear Algebra", num_challenges=3)

    def test_requested_count_is_clamped(self, lesson_engine, fake_gateway):
        fake_gateway.queue(plan_response(10))
        draft = lesson_engine.generate_plan("Linear Algebra", num_challenges=25)
        assert len(draft.challenges) == 10
        assert "exactly 10 challenges" in fake_gateway.last_messages[0].content

    def test_default_count(self, lesson_engine, fake_gateway):
        fake_gateway.queue(plan_response(5))
        assert len(lesson_engine.generate_plan("Linear Algebra").challenges) == 5

    def test_blank_topic_never_calls_the_model(self, lesson_engine, fake_gateway):
        with pytest.raises(InvalidInput):
            lesson_engine.generate_plan("  ")
        assert fake_gateway.calls == []

    def test_gateway_error_propagates(self, lesson_engine, fake_gateway):
        fake_gateway.queue(GatewayUnavailable("OPENROUTER_API_KEY is not set"))
        with pytest.raises(GatewayUnavailable):
            lesson_engine.generate_plan("Linear Algebra")

    def test_settings_drive_sampling(self, lesson_engine, fake_gateway, test_settings):
        fake_gateway.queue(plan_response(3))
        lesson_engine.generate_plan("Linear Algebra", num_challenges=3)
        options = fake_gateway.last_options
        assert options.temperature == test_settings.generation_temperature
        assert options.max_tokens == test_settings.max_output_tokens


class TestEvaluateAndRecompute:
    def test_evaluate(self, lesson_engine, fake_gateway, make_challenge):
        fake_gateway.queue(evaluation_response(True, 77, "Good."))
        evaluation = lesson_engine.evaluate_submission(make_challenge(0), "An answer")
        assert (evaluation.passed, evaluation.score, evaluation.feedback) == (True, 77, "Good.")
        assert fake_gateway.last_options.temperature == 0.3

    def test_recompute_noop(self, lesson_engine, fake_gateway, make_challenge):
        result = lesson_engine.recompute_plan("Rust", [make_challenge(0)], [])
        assert not result.generated
        assert fake_gateway.calls == []

    def test_recompute_generates(self, lesson_engine, fake_gateway, make_challenge):
        fake_gateway.queue(adaptation_response(3))
        challenges = [make_challenge(0, ChallengeStatus.PASSED)]
        result = lesson_engine.recompute_plan("Rust", challenges, [])
        assert [c.order_index for c in result.new_challenges] == [1, 2, 3]
