"""
Keyword grading for "Challenge Me" answers.
"""

from __future__ import annotations

from dataclasses import dataclass, replace

from services.challenge_bank import ChallengeItem
from utils.text_utils import contains_any

SECTION_HINTS: dict[str, str] = {
    "2": "Consider how AI helps in analyzing medical imagery for disease detection.",
    "3": "Think about tailoring treatments and developing new medications.",
    "4": "What are the social and moral considerations when using new technologies like AI?",
}
FALLBACK_HINT = "Revisit the document for more details on this topic."

CORRECT_TEMPLATE = "That's correct! Your answer touches upon key aspects related to {label}."
INCORRECT_TEMPLATE = (
    "Not quite. While your answer is noted, it doesn't fully capture the main points "
    "as described in the document. {hint} ({reference})"
)


@dataclass(frozen=True)
class Evaluation:
    is_correct: bool
    feedback: str
    hint: str | None = None


def section_label(reference: str) -> str:
    """
    "Section 2: AI in Diagnostics." -> "2".

    Takes the text before the first colon, lower-cases it and removes the
    "section " prefix.
    """
    head = (reference or "").split(":", 1)[0].strip().lower()
    return head.replace("section ", "", 1)


def hint_for(reference: str) -> str:
    return SECTION_HINTS.get(section_label(reference), FALLBACK_HINT)


def evaluate(submitted_answer: str, item: ChallengeItem) -> Evaluation:
    """Correct iff the answer contains at least one expected keyword."""
    if contains_any(submitted_answer, item.expected_keywords):
        return Evaluation(
            is_correct=True,
            feedback=CORRECT_TEMPLATE.format(label=section_label(item.reference)),
        )
    hint = hint_for(item.reference)
    return Evaluation(
        is_correct=False,
        feedback=INCORRECT_TEMPLATE.format(hint=hint, reference=item.reference),
        hint=hint,
    )


def grade(item: ChallengeItem, submitted_answer: str) -> ChallengeItem:
    """Return a copy of *item* carrying the answer and its evaluation."""
    result = evaluate(submitted_answer, item)
    return replace(item, user_answer=submitted_answer, feedback=result.feedback, is_correct=result.is_correct)
