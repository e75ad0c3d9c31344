"""Quiz session state machine: present, grade, record and advance."""
import logging
import random
import re
from dataclasses import dataclass
from typing import Callable, Iterable, Optional, Union

from quiz_drill.models import Question, QuestionType, SessionError
from quiz_drill.store import QuestionStore

logger = logging.getLogger(__name__)

OPTION_LETTERS = "ABCDEFGH"

ENCOURAGEMENTS = (
    "Don't give up! Every mistake is a step towards mastery.",
    "Tough run, but you're learning. Keep going!",
    "Mistakes mean you're stretching yourself. Take a breath and try the next one.",
    "Slow down and read carefully. You've got this!",
    "Even experts miss a few. The review set will help these stick.",
)

STREAK_THRESHOLD = 3

Response = Union[str, Iterable[str]]


class SessionState:
    IDLE = "idle"
    PRESENTING = "presenting"
    ANSWERED = "answered"


@dataclass
class AnswerResult:
    question_id: str
    correct: bool
    expected: str
    explanation: str
    mastery_level: int
    encouragement: Optional[str] = None


_SEPARATORS = re.compile(r"[\s,，;；、/|]+")
_LIST_SEPARATORS = re.compile(r"[,，;；、/|]+")


def _option_letter(question: Question, text: str) -> Optional[str]:
    for i, option in enumerate(question.options[:len(OPTION_LETTERS)]):
        if text == str(option).strip():
            return OPTION_LETTERS[i]
    return None


def _single_letter(text: str) -> Optional[str]:
    text = text.upper()
    return text if len(text) == 1 and text in OPTION_LETTERS else None


def _choice_letters(question: Question, text: str) -> frozenset:
    """Normalize an option letter, letter list or option text(s) to a set of letters."""
    text = str(text).strip()
    letter = _option_letter(question, text)
    if letter:
        return frozenset(letter)
    letters = _SEPARATORS.sub("", text).upper()
    if letters and all(c in OPTION_LETTERS for c in letters):
        if question.type == QuestionType.SINGLE and len(letters) > 1:
            return frozenset([text])
        return frozenset(letters)
    if question.type == QuestionType.MULTIPLE:
        pieces = [p.strip() for p in _LIST_SEPARATORS.split(text) if p.strip()]
        mapped = [_option_letter(question, p) or _single_letter(p) for p in pieces]
        if len(pieces) > 1 and all(mapped):
            return frozenset(mapped)
    return frozenset([text])


def grade_response(question: Question, response: Response) -> bool:
    """Return True if response answers the question.

    Fill-in-blank: trimmed, case-insensitive equality. Single choice: the
    chosen option (letter or text) must match the canonical answer.
    Multiple choice: the set of chosen options must equal the correct set.
    """
    if question.type == QuestionType.BLANK:
        if not isinstance(response, str):
            return False
        return response.strip().lower() == question.answer.strip().lower()
    expected = _choice_letters(question, question.answer)
    if isinstance(response, str):
        chosen = _choice_letters(question, response)
    else:
        chosen = frozenset().union(*(_choice_letters(question, r) for r in response))
    if question.type == QuestionType.SINGLE and len(chosen) != 1:
        return False
    return chosen == expected


class QuizSession:
    """Steps through one session queue, mutating the store on each answer.

    ``persist`` is called with the store after every mutation. It should not
    raise; if it does, the failure is logged and the session carries on.
    """

    def __init__(
        self,
        store: QuestionStore,
        persist: Optional[Callable[[QuestionStore], object]] = None,
        rng: Optional[random.Random] = None,
    ):
        self.store = store
        self.persist = persist
        self.rng = rng or random.Random()
        self.state = SessionState.IDLE
        self.queue: list[str] = []
        self.position = 0
        self.wrong_streak = 0
        self.result: Optional[AnswerResult] = None
        self.answered = 0
        self.correct = 0

    @property
    def current_question(self) -> Optional[Question]:
        if self.state == SessionState.IDLE:
            return None
        return self.store.get(self.queue[self.position])

    @property
    def is_last(self) -> bool:
        return self.position >= len(self.queue) - 1

    def start(self, queue: list[str]) -> None:
        if not queue:
            raise SessionError("nothing to practice: the session queue is empty")
        self.queue = list(queue)
        self.position = 0
        self.wrong_streak = 0
        self.answered = 0
        self.correct = 0
        self.result = None
        self.state = SessionState.PRESENTING

    def submit(self, response: Response) -> AnswerResult:
        if self.state == SessionState.ANSWERED:
            return self.result
        if self.state != SessionState.PRESENTING:
            raise SessionError("no question is being presented")
        question = self.current_question
        is_correct = grade_response(question, response)
        level = self.store.record_answer(question.id, is_correct)
        self._save()

        self.answered += 1
        encouragement = None
        if is_correct:
            self.correct += 1
            self.wrong_streak = 0
        else:
            self.wrong_streak += 1
            if self.wrong_streak >= STREAK_THRESHOLD:
                encouragement = self.rng.choice(ENCOURAGEMENTS)
        self.result = AnswerResult(
            question_id=question.id,
            correct=is_correct,
            expected=question.answer,
            explanation=question.explanation,
            mastery_level=level,
            encouragement=encouragement,
        )
        self.state = SessionState.ANSWERED
        return self.result

    def advance(self) -> bool:
        """Move to the next question. Returns True when the session is complete."""
        if self.state != SessionState.ANSWERED:
            raise SessionError("cannot advance before the question is answered")
        if self.is_last:
            self.exit()
            return True
        self.position += 1
        self.result = None
        self.state = SessionState.PRESENTING
        return False

    def exit(self) -> None:
        self.state = SessionState.IDLE
        self.result = None
        self.queue = []
        self.position = 0

    def dismiss_current(self) -> None:
        """Drop the current question from the mistake set ("I know this now")."""
        question = self.current_question
        if question is None:
            raise SessionError("no active question to dismiss")
        self.store.dismiss_mistake(question.id)
        self._save()

    def _save(self) -> None:
        if self.persist is None:
            return
        try:
            self.persist(self.store)
        except Exception:
            logger.exception("Saving quiz state failed; continuing with in-memory state")
