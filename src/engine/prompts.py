"""
LLM prompts for plan generation, adaptation and grading.

Each builder returns the full conversation (system + user message). The system
message pins the exact JSON contract; the user message carries the request.
"""
from __future__ import annotations

from collections.abc import Sequence

from src.engine.gateway import Message
from src.engine.models import Challenge, Difficulty

HIGH_SCORE_THRESHOLD = 85
LOW_SCORE_THRESHOLD = 60

CHALLENGE_SHAPE = """    {
      "title": "Short challenge title",
      "description": "Detailed description of what the learner needs to do",
      "success_criteria": "Clear criteria for what constitutes a successful answer",
      "hints": ["Hint 1", "Hint 2"]
    }"""


# =============================================================================
# Initial Plan Generation
# =============================================================================


def plan_system_prompt(num_challenges: int, difficulty: Difficulty) -> str:
    return f"""You are an expert educational content creator. Your task is to create engaging, structured learning plans with practical challenges.

Your response MUST be valid JSON with this exact structure:
{{
  "description": "A 2-3 sentence description of what the learner will accomplish",
  "challenges": [
{CHALLENGE_SHAPE}
  ]
}}

Guidelines:
- Create exactly {num_challenges} challenges
- Challenges should be progressive, building on previous knowledge
- Each challenge should be practical and require a written response
- Success criteria should be specific and measurable
- Include 2-3 hints per challenge
- Tailor difficulty to the {difficulty.value} level
- Make challenges engaging and focused on real understanding, not memorization"""


def plan_user_prompt(
    topic: str, context: str | None, difficulty: Difficulty, num_challenges: int
) -> str:
    context_line = f"\nAdditional context from learner: {context}\n" if context else ""
    return f"""Create a learning plan for: "{topic}"
{context_line}
Difficulty level: {difficulty.value}
Number of challenges: {num_challenges}

Return ONLY valid JSON, no markdown or additional text."""


def build_plan_messages(
    topic: str, context: str | None, difficulty: Difficulty, num_challenges: int
) -> list[Message]:
    return [
        Message("system", plan_system_prompt(num_challenges, difficulty)),
        Message("user", plan_user_prompt(topic, context, difficulty, num_challenges)),
    ]


def build_prompt_used(
    topic: str, context: str | None, difficulty: Difficulty, num_challenges: int
) -> str:
    """Audit text stored on the plan."""
    lines = [f"Topic: {topic}"]
    if context:
        lines.append(f"Context: {context}")
    lines.append(f"Difficulty: {difficulty.value}")
    lines.append(f"Challenges: {num_challenges}")
    return "\n".join(lines)


# =============================================================================
# Adaptation
# =============================================================================


def adaptation_guidance(average_score: float) -> str:
    """Pick the difficulty instruction for the learner's average."""
    if average_score > HIGH_SCORE_THRESHOLD:
        return (
            "The learner is performing very well. Make the new challenges more "
            "difficult: combine concepts, add edge cases and expect deeper reasoning."
        )
    if average_score < LOW_SCORE_THRESHOLD:
        return (
            "The learner is struggling. Provide more scaffolding: break ideas into "
            "smaller steps, keep challenges simpler and make hints more concrete."
        )
    return "The learner is progressing steadily. Keep the difficulty at the current level."


def adaptation_system_prompt(num_challenges: int, average_score: float) -> str:
    return f"""You are an expert educational content creator. Your task is to create new challenges that adapt to the learner's demonstrated level.

Your response MUST be valid JSON with this exact structure:
{{
  "challenges": [
{CHALLENGE_SHAPE}
  ]
}}

Guidelines:
- Create exactly {num_challenges} new challenges
- {adaptation_guidance(average_score)}
- Build on concepts from completed challenges
- Each challenge should be practical and require a written response"""


def summarize_completed(completed: Sequence[Challenge]) -> str:
    """Title and status only, to bound prompt size."""
    if not completed:
        return "- (none)"
    return "\n".join(f"- {c.title}: {c.status.value}" for c in completed)


def build_adaptation_messages(
    topic: str,
    completed: Sequence[Challenge],
    average_score: float,
    num_challenges: int,
) -> list[Message]:
    user = f"""Topic: "{topic}"

Completed challenges:
{summarize_completed(completed)}

Learner's average score: {round(average_score)}%

Create {num_challenges} new adapted challenges. Return ONLY valid JSON."""
    return [
        Message("system", adaptation_system_prompt(num_challenges, average_score)),
        Message("user", user),
    ]


# =============================================================================
# Grading
# =============================================================================

EVALUATION_SYSTEM_PROMPT = """You are an expert educational evaluator. Your task is to evaluate a learner's submission against specific success criteria.

Your response MUST be valid JSON with this exact structure:
{
  "passed": true/false,
  "feedback": "Constructive feedback explaining what was good and what could be improved",
  "score": 0-100
}

Evaluation guidelines:
- Be encouraging but honest
- A score of 70+ with all key criteria met = passed
- Provide specific, actionable feedback
- Reference the success criteria in your evaluation
- If the answer is mostly correct but incomplete, still provide a reasonable score
- Maximum feedback length: 3-4 sentences"""


def build_evaluation_messages(
    title: str, description: str, success_criteria: str, submission: str
) -> list[Message]:
    user = f'''Challenge: {title}

Description: {description}

Success Criteria: {success_criteria}

Learner's Submission:
"""
{submission}
"""

Evaluate this submission and return ONLY valid JSON.'''
    return [Message("system", EVALUATION_SYSTEM_PROMPT), Message("user", user)]
