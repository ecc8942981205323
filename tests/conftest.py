import random
from typing import List

import pytest

from kotoba.models import Card, Tier


def make_card(card_id: int, translation: str, tier=Tier.N5, **overrides) -> Card:
    fields = dict(
        id=card_id,
        term=f"term{card_id}",
        reading=f"reading{card_id}",
        romanized=f"romaji{card_id}",
        translation_primary=f"en-{translation}",
        translation_secondary=translation,
        tier=tier,
    )
    fields.update(overrides)
    return Card(**fields)


@pytest.fixture
def rng() -> random.Random:
    return random.Random(1234)


@pytest.fixture
def mixed_catalog() -> List[Card]:
    cards = [make_card(i, f"n5-{i}", tier=Tier.N5) for i in range(1, 9)]
    cards += [make_card(i, f"n4-{i}", tier=Tier.N4) for i in range(9, 14)]
    cards += [make_card(i, f"n3-{i}", tier=Tier.N3) for i in range(14, 17)]
    cards.append(make_card(17, "loose", tier=None))
    return cards
