"""
Domain: satisfaction survey.

The question list is static configuration, loaded once and never mutated.
A submission must answer every required question before a survey gift is
issued; rating answers are integers 1-5 and multiple choice answers must be
one of the listed option values.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, List, Mapping, Optional, Tuple

from .prizes import PrizeCatalog, PrizeCatalogEntry

MIN_RATING = 1
MAX_RATING = 5


class QuestionType(str, Enum):
    RATING = "rating"
    MULTIPLE_CHOICE = "multiple_choice"
    TEXT = "text"


@dataclass(frozen=True, slots=True)
class QuestionOption:
    value: str
    label: str


@dataclass(frozen=True, slots=True)
class Question:
    id: str
    text: str
    type: QuestionType
    required: bool
    options: Tuple[QuestionOption, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "id": self.id,
            "text": self.text,
            "type": self.type.value,
            "required": self.required,
        }
        if self.options:
            data["options"] = [{"value": o.value, "label": o.label} for o in self.options]
        return data


def _rating(question_id: str, text: str) -> Question:
    return Question(question_id, text, QuestionType.RATING, required=True)


SURVEY_QUESTIONS: Tuple[Question, ...] = (
    _rating("evento_geral", "Como você avalia o evento no geral?"),
    _rating("entrada", "Entrada no evento"),
    _rating("organizacao", "Organização interna"),
    _rating("limpeza", "Limpeza e estrutura"),
    _rating("banheiros", "Banheiros"),
    _rating("alimentacao", "Alimentação e bebida"),
    _rating("precos", "Preço das coisas dentro do evento"),
    _rating("seguranca", "Segurança"),
    _rating("circulacao", "Facilidade para circular"),
    _rating("experiencia_carnaval", "Experiência do carnaval em si"),
    Question(
        "voltaria",
        "Você voltaria no próximo ano?",
        QuestionType.MULTIPLE_CHOICE,
        required=True,
        options=(
            QuestionOption("sim", "Sim"),
            QuestionOption("talvez", "Talvez"),
            QuestionOption("nao", "Não"),
        ),
    ),
    Question("incomodou", "O que mais te incomodou hoje?", QuestionType.TEXT, required=False),
    Question("surpreendeu", "O que mais te surpreendeu positivamente?", QuestionType.TEXT, required=False),
    Question("melhorar", "Se pudesse melhorar uma coisa agora, o que seria?", QuestionType.TEXT, required=False),
)

SURVEY_GIFT_DESCRIPTION = (
    "Retire seu brinde surpresa no stand da Keepit! Mostre esta tela para nossa equipe."
)

# Single-entry catalog: every respondent gets the same gift, issued at most once.
SURVEY_GIFT_CATALOG = PrizeCatalog(
    (PrizeCatalogEntry("brinde-surpresa", "Brinde Surpresa", 1.0, "#34BF58", "🎁"),)
)


def _is_blank(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    return False


def _check_answer(question: Question, value: Any) -> Optional[str]:
    if question.type is QuestionType.RATING:
        if isinstance(value, bool):
            return f"Invalid rating for question: {question.text}"
        try:
            rating = int(value)
        except (TypeError, ValueError):
            return f"Invalid rating for question: {question.text}"
        if str(rating) != str(value).strip() or not MIN_RATING <= rating <= MAX_RATING:
            return f"Rating must be between {MIN_RATING} and {MAX_RATING}: {question.text}"
    elif question.type is QuestionType.MULTIPLE_CHOICE:
        allowed = {option.value for option in question.options}
        if value not in allowed:
            return f"Invalid option for question: {question.text}"
    return None


def validate_answers(
    answers: Mapping[str, Any],
    questions: Tuple[Question, ...] = SURVEY_QUESTIONS,
) -> List[str]:
    """
    Return a list of validation errors (empty when the submission is valid).

    Unknown question ids are ignored; the raw answers are stored as submitted.
    """

    errors: List[str] = []
    for question in questions:
        value = answers.get(question.id)
        if _is_blank(value):
            if question.required:
                errors.append(f"Required question: {question.text}")
            continue
        problem = _check_answer(question, value)
        if problem:
            errors.append(problem)
    return errors
