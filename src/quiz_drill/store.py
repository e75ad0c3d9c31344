"""Question store: questions, mastery levels, mistake set and answer stats."""
import logging
from dataclasses import dataclass, field

from quiz_drill.models import (
    DEFAULT_EXPLANATION, MASTERY_MAX, MASTERY_MISSED, MASTERY_UNSEEN,
    NotFoundError, ParseError, Question, QuestionType, Stats, ValidationError,
)

logger = logging.getLogger(__name__)

REQUIRED_FIELDS = ("id", "prompt", "answer")


def validate_question(question: Question) -> None:
    """Raise ValidationError if a record is missing required fields or has an unknown type."""
    for name in REQUIRED_FIELDS:
        value = getattr(question, name)
        if not isinstance(value, str):
            raise ValidationError(f"question {question.id or '?'} has non-text '{name}'")
        if not value.strip():
            raise ValidationError(f"question {question.id or '?'} is missing '{name}'")
    if question.type not in QuestionType.ALL:
        raise ValidationError(f"question {question.id} has unknown type '{question.type}'")


@dataclass
class QuestionStore:
    questions: dict[str, Question] = field(default_factory=dict)
    mistake_ids: list[str] = field(default_factory=list)
    stats: Stats = field(default_factory=Stats)

    def __len__(self) -> int:
        return len(self.questions)

    def __contains__(self, question_id: str) -> bool:
        return question_id in self.questions

    def get(self, question_id: str) -> Question:
        try:
            return self.questions[question_id]
        except KeyError:
            raise NotFoundError(f"unknown question id: {question_id}") from None

    def replace_all(self, questions: list[Question]) -> None:
        """Install a new question set, dropping all prior questions and mistakes.

        Every record is validated before anything is replaced, so a failing
        import leaves the store as it was. Answer stats are lifetime counters
        and survive the replacement.
        """
        installed: dict[str, Question] = {}
        for q in questions:
            validate_question(q)
            if q.id in installed:
                raise ValidationError(f"duplicate question id: {q.id}")
            installed[q.id] = Question(
                id=q.id,
                type=q.type,
                prompt=q.prompt.strip(),
                answer=q.answer.strip(),
                options=list(q.options),
                explanation=q.explanation or DEFAULT_EXPLANATION,
                mastery_level=MASTERY_UNSEEN,
            )
        self.questions = installed
        self.mistake_ids = []

    def record_answer(self, question_id: str, was_correct: bool) -> int:
        """Apply one graded answer and return the question's new mastery level."""
        question = self.get(question_id)
        self.stats.total_answered += 1
        if was_correct:
            self.stats.correct_count += 1
            question.mastery_level = min(MASTERY_MAX, question.mastery_level + 1)
            if question.mastery_level >= MASTERY_MAX:
                self.dismiss_mistake(question_id)
        else:
            question.mastery_level = MASTERY_MISSED
            if question_id not in self.mistake_ids:
                self.mistake_ids.append(question_id)
        return question.mastery_level

    def dismiss_mistake(self, question_id: str) -> None:
        if question_id in self.mistake_ids:
            self.mistake_ids.remove(question_id)

    def completion_rate(self) -> int:
        """Percentage of questions with positive mastery, 0 for an empty store."""
        total = len(self.questions)
        if total == 0:
            return 0
        seen = sum(1 for q in self.questions.values() if q.mastery_level > 0)
        return round(100 * seen / total)

    def clear(self) -> None:
        self.questions = {}
        self.mistake_ids = []
        self.stats = Stats()

    def to_snapshot(self) -> dict:
        return {
            "questions": [q.to_dict() for q in self.questions.values()],
            "mistakeSet": list(self.mistake_ids),
            "stats": self.stats.to_dict(),
        }

    @classmethod
    def from_snapshot(cls, data: dict) -> "QuestionStore":
        """Rebuild a store from a saved snapshot, repairing out-of-range values."""
        if not isinstance(data, dict) or not isinstance(data.get("questions", []), list):
            raise ParseError("snapshot is not a state document")
        store = cls()
        try:
            for raw in data.get("questions", []):
                q = Question.from_dict(raw)
                q.mastery_level = max(MASTERY_MISSED, min(MASTERY_MAX, q.mastery_level))
                store.questions[q.id] = q
            for question_id in data.get("mistakeSet", []):
                question_id = str(question_id)
                if question_id not in store.questions:
                    logger.warning("Dropping mistake entry for unknown question %s", question_id)
                    continue
                if question_id not in store.mistake_ids:
                    store.mistake_ids.append(question_id)
            store.stats = Stats.from_dict(data.get("stats"))
        except (TypeError, ValueError, AttributeError, ValidationError) as e:
            raise ParseError(f"snapshot is malformed: {e}") from e
        return store
