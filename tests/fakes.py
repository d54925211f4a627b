"""
Test doubles and canned model responses shared across the suite.
"""
import json


# ========================================
# Model output builders
# ========================================


def challenge_payload(index: int, prefix: str = "Challenge") -> dict:
    return {
        "title": f"{prefix} {index + 1}",
        "description": f"Explain concept number {index + 1} in your own words.",
        "success_criteria": f"Mentions the key property of concept {index + 1}.",
        "hints": [f"Think about example {index + 1}", "Start from the definition"],
    }


def plan_response(count: int, description: str = "You will build intuition step by step.") -> str:
    payload = {
        "description": description,
        "challenges": [challenge_payload(i) for i in range(count)],
    }
    return "Here is your plan:\n```json\n" + json.dumps(payload, indent=2) + "\n```"


def adaptation_response(count: int) -> str:
    return json.dumps({"challenges": [challenge_payload(i, "Adapted") for i in range(count)]})


def evaluation_response(passed=True, score=85, feedback="Clear and complete answer.") -> str:
    return json.dumps({"passed": passed, "score": score, "feedback": feedback})


# ========================================
# Fake gateway
# ========================================


class FakeGateway:
    """Scripted stand-in for ModelGateway.

    Queue strings to return or exceptions to raise, in call order.
    """

    def __init__(self, *responses):
        self.responses = list(responses)
        self.calls = []

    def queue(self, *responses):
        self.responses.extend(responses)
        return self

    def generate(self, messages, options):
        self.calls.append((list(messages), options))
        if not self.responses:
            raise AssertionError("FakeGateway called more times than scripted")
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response

    @property
    def last_messages(self):
        return self.calls[-1][0]

    @property
    def last_options(self):
        return self.calls[-1][1]

