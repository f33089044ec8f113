"""
Rule-based question answering over the reference document.

Rules are evaluated top-down and the first one whose triggers occur in the
lower-cased question wins; anything unmatched falls through to GENERAL.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Protocol

from utils.text_utils import contains_any


class Category(str, Enum):
    DIAGNOSTICS = "diagnostics"
    TREATMENT = "treatment"
    ETHICS = "ethics"
    GENERAL = "general"


SECTION_LABELS: dict[Category, str] = {
    Category.GENERAL: "Section 1: Introduction to AI in Healthcare",
    Category.DIAGNOSTICS: "Section 2: AI in Diagnostics",
    Category.TREATMENT: "Section 3: Personalized Medicine and Drug Discovery",
    Category.ETHICS: "Section 4: Ethical Considerations and Future Outlook",
}


@dataclass(frozen=True)
class CategoryRule:
    category: Category
    triggers: tuple[str, ...]

    def matches(self, question: str) -> bool:
        return contains_any(question, self.triggers)


@dataclass(frozen=True)
class Answer:
    category: Category
    answer_text: str
    justification: str


CATEGORY_RULES: tuple[CategoryRule, ...] = (
    CategoryRule(Category.DIAGNOSTICS, ("diagnostics", "x-rays", "mris", "ct scans")),
    CategoryRule(
        Category.TREATMENT,
        ("personalized medicine", "drug discovery", "genomic data", "drug development"),
    ),
    CategoryRule(
        Category.ETHICS,
        ("ethical concerns", "data privacy", "bias", "accountability", "future"),
    ),
)

CANNED_ANSWERS: dict[Category, str] = {
    Category.DIAGNOSTICS: (
        "AI significantly improves diagnostics by analyzing vast amounts of medical images like X-rays, "
        "MRIs, and CT scans with high accuracy, often surpassing human capabilities in identifying "
        "early-stage diseases such as cancer or retinopathy."
    ),
    Category.TREATMENT: (
        "AI plays a crucial role in personalized medicine by analyzing genomic data and patient history "
        "to tailor treatments. In drug discovery, it accelerates the identification and optimization of "
        "drug candidates, reducing time and cost."
    ),
    Category.ETHICS: (
        "Key ethical concerns with AI in healthcare include data privacy, algorithmic bias, and "
        "accountability. Ensuring fairness and transparency of AI systems is paramount for future integration."
    ),
    Category.GENERAL: (
        "AI is transforming healthcare by improving patient outcomes, streamlining operations, and reducing "
        "costs through its capabilities in data analysis, pattern recognition, and predictive modeling."
    ),
}

_JUSTIFICATION_TAILS: dict[Category, str] = {
    Category.DIAGNOSTICS: "which details AI's role in analyzing medical images for improved detection.",
    Category.TREATMENT: "which outlines AI's contributions to these areas.",
    Category.ETHICS: "which discusses the ethical challenges and future implications.",
    Category.GENERAL: "which provides a general overview of AI's impact.",
}


def justification_for(category: Category) -> str:
    return f"This is supported by {SECTION_LABELS[category]}, {_JUSTIFICATION_TAILS[category]}"


class Classifier(Protocol):
    def classify(self, question: str) -> Category: ...


class KeywordClassifier:
    """First-match-wins classifier over an ordered rule list."""

    def __init__(
        self,
        rules: tuple[CategoryRule, ...] = CATEGORY_RULES,
        fallback: Category = Category.GENERAL,
    ) -> None:
        self.rules = tuple(rules)
        self.fallback = fallback

    def classify(self, question: str) -> Category:
        for rule in self.rules:
            if rule.matches(question):
                return rule.category
        return self.fallback


class QuestionAnswerer:
    """Maps a question to its category's canned answer and justification."""

    def __init__(self, classifier: Classifier | None = None) -> None:
        self.classifier = classifier or KeywordClassifier()

    def answer(self, question: str) -> Answer:
        category = self.classifier.classify(question)
        return Answer(
            category=category,
            answer_text=CANNED_ANSWERS[category],
            justification=justification_for(category),
        )


_DEFAULT_ANSWERER = QuestionAnswerer()


def answer(question: str) -> Answer:
    """Answer *question* with the default keyword classifier."""
    return _DEFAULT_ANSWERER.answer(question)
