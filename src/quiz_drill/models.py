"""Data classes and errors for the quiz domain model."""
from dataclasses import dataclass, field
from typing import Optional


class QuestionType:
    SINGLE = "single"
    MULTIPLE = "multiple"
    BLANK = "blank"

    ALL = (SINGLE, MULTIPLE, BLANK)


DEFAULT_EXPLANATION = "No explanation provided."

MASTERY_MISSED = -1
MASTERY_UNSEEN = 0
MASTERY_MAX = 3


class QuizError(Exception):
    """Base class for quiz errors."""


class ValidationError(QuizError):
    """A question record is malformed or missing required fields."""


class ParseError(QuizError):
    """An input file or stored snapshot could not be read."""


class NotFoundError(QuizError):
    """An operation referenced an unknown question id."""


class SessionError(QuizError):
    """A quiz session transition is not valid in the current state."""


def _text(value) -> str:
    return "" if value is None else str(value)


@dataclass
class Question:
    id: str
    type: str
    prompt: str
    answer: str
    options: list[str] = field(default_factory=list)
    explanation: str = DEFAULT_EXPLANATION
    mastery_level: int = MASTERY_UNSEEN

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "type": self.type,
            "prompt": self.prompt,
            "options": list(self.options),
            "answer": self.answer,
            "explanation": self.explanation,
            "masteryLevel": self.mastery_level,
        }

    @staticmethod
    def from_dict(d: dict) -> "Question":
        options = d.get("options") or d.get("choices") or []
        if not isinstance(options, (list, tuple)):
            raise ValidationError(f"question {d.get('id', '?')} has options that are not a list")
        return Question(
            id=_text(d.get("id")),
            type=d.get("type", QuestionType.SINGLE),
            prompt=_text(d.get("prompt") or d.get("question")),
            answer=_text(d.get("answer")),
            options=[_text(o) for o in options],
            explanation=_text(d.get("explanation")) or DEFAULT_EXPLANATION,
            mastery_level=int(d.get("masteryLevel", MASTERY_UNSEEN) or 0),
        )


@dataclass
class Stats:
    total_answered: int = 0
    correct_count: int = 0

    def to_dict(self) -> dict:
        return {"totalAnswered": self.total_answered, "correctCount": self.correct_count}

    @staticmethod
    def from_dict(d: Optional[dict]) -> "Stats":
        d = d or {}
        return Stats(
            total_answered=max(0, int(d.get("totalAnswered", 0) or 0)),
            correct_count=max(0, int(d.get("correctCount", 0) or 0)),
        )
