"""Session queue construction for practice runs and mistake review."""
import random
from typing import Optional

from quiz_drill.store import QuestionStore

_rng = random.Random()


def shuffled(items: list, rng: Optional[random.Random] = None) -> list:
    """Return a uniformly shuffled copy of items (Fisher-Yates)."""
    rng = rng or _rng
    result = list(items)
    for i in range(len(result) - 1, 0, -1):
        j = rng.randint(0, i)
        result[i], result[j] = result[j], result[i]
    return result


def build_normal_queue(
    store: QuestionStore, sample_size: Optional[int] = 20, rng: Optional[random.Random] = None,
) -> list[str]:
    """Random sample of question ids. Empty when the store has no questions."""
    ids = shuffled(list(store.questions), rng)
    if sample_size is None or sample_size <= 0:
        return ids
    return ids[:sample_size]


def build_mistake_queue(store: QuestionStore) -> list[str]:
    # Snapshot: later changes to the mistake set don't affect a running review.
    return list(store.mistake_ids)
