import logging
import random
from typing import (
    Callable,
    Dict,
    Iterable,
    List,
    Optional,
    Sequence,
    Tuple,
    TypeVar,
    Union,
)

from .models import (
    ALL_TIERS,
    AnswerRecord,
    Card,
    Question,
    QuizMode,
    QuizProgress,
    QuizResults,
    QuizSession,
    Tier,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")

OPTION_COUNT = 4
DISTRACTOR_COUNT = OPTION_COUNT - 1
MIN_POOL_SIZE = OPTION_COUNT


# --- Strategy: which card fields a mode tests ---
class ModeStrategy:
    """Selects the answer and the optional hint a question shows for a card."""

    def __init__(
        self,
        mode: QuizMode,
        answer_of: Callable[[Card], str],
        hint_of: Optional[Callable[[Card], str]] = None,
    ):
        self.mode = mode
        self.answer_of = answer_of
        self.hint_of = hint_of


MODE_STRATEGIES: Dict[QuizMode, ModeStrategy] = {
    QuizMode.TRANSLATION: ModeStrategy(
        QuizMode.TRANSLATION, answer_of=lambda card: card.translation
    ),
    QuizMode.READING: ModeStrategy(
        QuizMode.READING,
        answer_of=lambda card: card.reading,
        hint_of=lambda card: card.romanized,
    ),
}


def percent_half_up(part: int, whole: int) -> int:
    """Percentage rounded with halves going up, so 1/8 gives 13."""
    return (200 * part + whole) // (2 * whole)


def unique_by_id(items: Iterable[T], key: Callable[[T], int]) -> List[T]:
    """Drops later items whose id was already seen, keeping order."""
    seen = set()
    unique = []
    for item in items:
        item_id = key(item)
        if item_id in seen:
            continue
        seen.add(item_id)
        unique.append(item)
    return unique


class QuizEngine:
    """Runs one multiple-choice quiz session at a time over a fixed card catalog.

    Every ``start`` call replaces the previous session. Failures (too few cards,
    calls without an active session) are reported through ``None``/``False``
    returns and empty results rather than exceptions.
    """

    def __init__(self, cards: Sequence[Card], rng: Optional[random.Random] = None):
        self.cards: Tuple[Card, ...] = tuple(cards)
        self.rng = rng if rng is not None else random.Random()
        self.session: Optional[QuizSession] = None

    def _shuffled(self, items: Sequence[T]) -> List[T]:
        # Fisher-Yates on a copy; the input is never reordered in place.
        shuffled = list(items)
        for i in range(len(shuffled) - 1, 0, -1):
            j = self.rng.randrange(i + 1)
            shuffled[i], shuffled[j] = shuffled[j], shuffled[i]
        return shuffled

    def _filter_pool(self, tier: Union[Tier, str, None]) -> List[Card]:
        if tier == ALL_TIERS:
            return list(self.cards)
        return [card for card in self.cards if card.tier == tier]

    @property
    def pool(self) -> Tuple[Card, ...]:
        return tuple(self.session.pool) if self.session else ()

    def start(
        self,
        tier: Union[Tier, str, None],
        requested_count: int,
        mode: Union[QuizMode, str] = QuizMode.TRANSLATION,
    ) -> Optional[Question]:
        """Builds a new session and returns its first question.

        ``requested_count`` of 0 uses every card in the tier. Returns None when
        the tier holds fewer than four cards.
        """
        strategy = MODE_STRATEGIES[QuizMode(mode)]
        pool = self._filter_pool(tier)
        logger.info(
            f"Quiz start [Tier: {tier}, Mode: {strategy.mode.value}, "
            f"Requested: {requested_count}, Pool: {len(pool)}/{len(self.cards)}]"
        )

        if len(pool) < MIN_POOL_SIZE:
            logger.warning(f"Not enough cards for quiz in tier {tier}: {len(pool)}")
            return None

        unique_cards = unique_by_id(self._shuffled(pool), key=lambda card: card.id)
        if requested_count == 0:
            actual_count = len(unique_cards)
        else:
            actual_count = min(requested_count, len(unique_cards))

        sequence = [
            self._build_question(card, pool, strategy)
            for card in unique_cards[:actual_count]
        ]
        sequence = unique_by_id(sequence, key=lambda question: question.card.id)

        self.session = QuizSession(
            pool=pool, sequence=sequence, mode=strategy.mode, tier=tier
        )
        return self.current_question()

    def _pick_distractors(
        self, card: Card, pool: Sequence[Card], strategy: ModeStrategy
    ) -> List[Card]:
        answer_of = strategy.answer_of
        seen_answers = {answer_of(card)}
        distractors: List[Card] = []
        candidates = self._shuffled([other for other in pool if other.id != card.id])
        for candidate in candidates:
            answer = answer_of(candidate)
            if answer not in seen_answers:
                seen_answers.add(answer)
                distractors.append(candidate)
                logger.debug(f"Distractor for {card.term}: {candidate.term} - {answer}")
            if len(distractors) >= DISTRACTOR_COUNT:
                break
        return distractors

    def _build_question(
        self, card: Card, pool: Sequence[Card], strategy: ModeStrategy
    ) -> Question:
        correct_answer = strategy.answer_of(card)
        choices = self._pick_distractors(card, pool, strategy) + [card]
        if len(choices) < OPTION_COUNT:
            logger.debug(
                f"Only {len(choices)} options for {card.term} ({correct_answer})"
            )

        # Answers and hints are shuffled as pairs so they stay aligned.
        choices = self._shuffled(choices)
        options = [strategy.answer_of(choice) for choice in choices]
        hints = None
        if strategy.hint_of is not None:
            hints = [strategy.hint_of(choice) for choice in choices]

        return Question(
            card=card,
            options=options,
            option_hints=hints,
            correct_index=options.index(correct_answer),
            mode=strategy.mode,
        )

    def current_question(self) -> Optional[Question]:
        session = self.session
        if session is None or not session.active:
            return None
        if session.cursor >= len(session.sequence):
            return None
        return session.sequence[session.cursor]

    def check_answer(self, selected_index: int) -> bool:
        question = self.current_question()
        if question is None:
            return False

        session = self.session
        is_correct = selected_index == question.correct_index
        if is_correct:
            session.score += 1
        session.history.append(
            AnswerRecord(
                index=session.cursor,
                question=question,
                selected_index=selected_index,
                is_correct=is_correct,
            )
        )
        return is_correct

    def is_answered(self) -> bool:
        """Whether the current question already has an entry in the history."""
        session = self.session
        if session is None or not session.history:
            return False
        return session.history[-1].index == session.cursor

    def next_question(self) -> Optional[Question]:
        session = self.session
        if session is None or not session.active:
            return None
        session.cursor += 1
        if session.cursor >= len(session.sequence):
            session.active = False
            logger.info(
                f"Quiz finished: {session.score}/{len(session.sequence)} correct"
            )
            return None
        return self.current_question()

    def is_finished(self) -> bool:
        if self.session is None:
            return True
        return self.session.cursor >= len(self.session.sequence)

    def is_active(self) -> bool:
        return self.session is not None and self.session.active

    def end_session(self):
        if self.session is not None:
            self.session.active = False

    def results(self) -> QuizResults:
        session = self.session
        if session is None:
            return QuizResults()

        total = len(session.sequence)
        percentage = percent_half_up(session.score, total) if total > 0 else 0
        return QuizResults(
            total=total,
            correct=session.score,
            wrong=total - session.score,
            percentage=percentage,
            history=list(session.history),
        )

    def progress(self) -> QuizProgress:
        session = self.session
        if session is None:
            return QuizProgress()
        total = len(session.sequence)
        return QuizProgress(
            current=min(session.cursor + 1, total), total=total, score=session.score
        )
