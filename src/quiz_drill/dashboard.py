"""Dashboard statistics derived from the question store."""
from quiz_drill.models import MASTERY_MAX, MASTERY_MISSED
from quiz_drill.store import QuestionStore


def get_completion_label(rate: float) -> str:
    if rate >= 80:
        return "MASTERED"
    elif rate >= 50:
        return "GOOD PROGRESS"
    elif rate > 0:
        return "GETTING STARTED"
    return "NOT STARTED"


def get_completion_color(rate: float) -> str:
    if rate >= 80:
        return "green"
    elif rate >= 50:
        return "yellow"
    elif rate > 0:
        return "dark_orange"
    return "red"


def total_questions(store: QuestionStore) -> int:
    return len(store.questions)


def mistake_count(store: QuestionStore) -> int:
    return len(store.mistake_ids)


def completion_rate(store: QuestionStore) -> int:
    return store.completion_rate()


def accuracy(store: QuestionStore) -> int:
    """Lifetime share of correct answers as a percentage."""
    if store.stats.total_answered == 0:
        return 0
    return round(100 * store.stats.correct_count / store.stats.total_answered)


def mastery_breakdown(store: QuestionStore) -> dict[int, int]:
    counts = {level: 0 for level in range(MASTERY_MISSED, MASTERY_MAX + 1)}
    for q in store.questions.values():
        counts[q.mastery_level] = counts.get(q.mastery_level, 0) + 1
    return counts


def get_study_stats(store: QuestionStore) -> dict:
    return {
        "total_questions": total_questions(store),
        "mistake_count": mistake_count(store),
        "completion_rate": completion_rate(store),
        "total_answered": store.stats.total_answered,
        "correct_count": store.stats.correct_count,
        "accuracy": accuracy(store),
    }
