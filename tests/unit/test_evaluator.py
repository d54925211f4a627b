"""
Unit tests for the submission evaluator.
"""

import pytest

from src.engine.contract import DEFAULT_FEEDBACK
from src.engine.errors import ContractViolation, GatewayRejected, InvalidInput
from src.engine.evaluator import SubmissionEvaluator, normalize_submission
from tests.fakes import evaluation_response


@pytest.fixture
def evaluator(fake_gateway):
    return SubmissionEvaluator(fake_gateway, model="test/model")


@pytest.fixture
def challenge(make_challenge):
    return make_challenge(0)


class TestNormalize:
    def test_trims(self):
        assert normalize_submission("  answer \n") == "answer"

    @pytest.mark.parametrize("text", ["", "   \n\t", None])
    def test_blank(self, text):
        with pytest.raises(InvalidInput, match="Submission content is required"):
            normalize_submission(text)


class TestEvaluate:
    def test_blank_submission_never_calls_the_model(self, evaluator, fake_gateway, challenge):
        with pytest.raises(InvalidInput):
            evaluator.evaluate(challenge, "    ")
        assert fake_gateway.calls == []

    def test_returns_evaluation(self, evaluator, fake_gateway, challenge):
        fake_gateway.queue(evaluation_response(True, 88, "Nicely argued."))
        evaluation = evaluator.evaluate(challenge, "My answer")
        assert evaluation.passed is True
        assert evaluation.score == 88
        assert evaluation.feedback == "Nicely argued."

    def test_low_temperature(self, evaluator, fake_gateway, challenge):
        fake_gateway.queue(evaluation_response())
        evaluator.evaluate(challenge, "My answer")
        assert fake_gateway.last_options.temperature == 0.3
        assert fake_gateway.last_options.model == "test/model"

    def test_prompt_carries_challenge_and_trimmed_answer(self, evaluator, fake_gateway, challenge):
        fake_gateway.queue(evaluation_response())
        evaluator.evaluate(challenge, "   The determinant is zero.   ")

        system, user = fake_gateway.last_messages
        assert '"passed"' in system.content
        assert "Challenge: Challenge 1" in user.content
        assert "Success Criteria: Uses the correct definition." in user.content
        assert '"""\nThe determinant is zero.\n"""' in user.content

    def test_passed_flag_is_authoritative(self, evaluator, fake_gateway, challenge):
        fake_gateway.queue(evaluation_response(False, 95, "Missed a criterion."))
        evaluation = evaluator.evaluate(challenge, "My answer")
        assert evaluation.passed is False
        assert evaluation.score == 95

        fake_gateway.queue(evaluation_response(True, 20, "Generous pass."))
        evaluation = evaluator.evaluate(challenge, "My answer")
        assert evaluation.passed is True
        assert evaluation.score == 20

    def test_score_is_clamped(self, evaluator, fake_gateway, challenge):
        fake_gateway.queue(evaluation_response(True, 140))
        assert evaluator.evaluate(challenge, "My answer").score == 100

    def test_missing_feedback(self, evaluator, fake_gateway, challenge):
        fake_gateway.queue('{"passed": false, "score": 10}')
        assert evaluator.evaluate(challenge, "My answer").feedback == DEFAULT_FEEDBACK

    def test_unparseable_output(self, evaluator, fake_gateway, challenge):
        fake_gateway.queue("Looks fine to me!")
        with pytest.raises(ContractViolation):
            evaluator.evaluate(challenge, "My answer")

    def test_gateway_error_propagates(self, evaluator, fake_gateway, challenge):
        fake_gateway.queue(GatewayRejected("rate limited", status_code=429))
        with pytest.raises(GatewayRejected):
            evaluator.evaluate(challenge, "My answer")
