"""
"Challenge Me" quiz bank.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable


@dataclass(frozen=True)
class ChallengeItem:
    id: int
    question: str
    expected_keywords: frozenset[str]
    reference: str
    user_answer: str | None = None
    feedback: str | None = None
    is_correct: bool | None = None

    @property
    def is_graded(self) -> bool:
        return self.feedback is not None


CHALLENGE_TEMPLATES: tuple[ChallengeItem, ...] = (
    ChallengeItem(
        id=1,
        question="According to the document, what is one significant way AI improves diagnostics?",
        expected_keywords=frozenset({"medical images", "cancer", "retinopathy", "scans"}),
        reference="Section 2: AI in Diagnostics.",
    ),
    ChallengeItem(
        id=2,
        question=(
            "Besides diagnostics, name another area where AI is crucial in healthcare, "
            "as mentioned in the document."
        ),
        expected_keywords=frozenset({"personalized medicine", "drug discovery", "genomic data"}),
        reference="Section 3: Personalized Medicine and Drug Discovery.",
    ),
    ChallengeItem(
        id=3,
        question="What ethical concerns are highlighted regarding AI deployment in healthcare?",
        expected_keywords=frozenset(
            {"data privacy", "algorithmic bias", "accountability", "fairness", "transparency"}
        ),
        reference="Section 4: Ethical Considerations and Future Outlook.",
    ),
)


def load_challenge_items(templates: Iterable[ChallengeItem] = CHALLENGE_TEMPLATES) -> tuple[ChallengeItem, ...]:
    """Return fresh, ungraded copies of *templates* in order."""
    return tuple(
        ChallengeItem(
            id=t.id,
            question=t.question,
            expected_keywords=frozenset(t.expected_keywords),
            reference=t.reference,
        )
        for t in templates
    )
