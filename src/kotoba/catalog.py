import json
import logging
import os
from typing import Any, Dict, List, Optional, Tuple, Union

import pandas as pd
from pydantic import ValidationError

from .models import ALL_TIERS, Card, Tier

logger = logging.getLogger(__name__)

# Field names used by the flashcards.json authoring pipeline.
COLUMN_ALIASES = {
    "kanji": "term",
    "furigana": "reading",
    "romaji": "romanized",
    "meaning": "translation_primary",
    "meaning_id": "translation_secondary",
    "level": "tier",
}
REQUIRED_COLUMNS = ("id", "term", "reading", "translation_primary")
OPTIONAL_TEXT_COLUMNS = ("romanized", "translation_secondary")

SAMPLE_CARDS = [
    {"id": 1, "term": "日本", "reading": "にほん", "romanized": "nihon",
     "translation_primary": "Japan", "translation_secondary": "Jepang", "tier": "N5"},
    {"id": 2, "term": "水", "reading": "みず", "romanized": "mizu",
     "translation_primary": "water", "translation_secondary": "air", "tier": "N5"},
    {"id": 3, "term": "山", "reading": "やま", "romanized": "yama",
     "translation_primary": "mountain", "translation_secondary": "gunung", "tier": "N5"},
    {"id": 4, "term": "学校", "reading": "がっこう", "romanized": "gakkou",
     "translation_primary": "school", "translation_secondary": "sekolah", "tier": "N5"},
    {"id": 5, "term": "先生", "reading": "せんせい", "romanized": "sensei",
     "translation_primary": "teacher", "translation_secondary": "guru", "tier": "N5"},
]


def _parse_tier(value: Any) -> Optional[Tier]:
    if value is None or pd.isna(value):
        return None
    try:
        return Tier(str(value).strip())
    except ValueError:
        return None


class CatalogManager:
    """Loads the static card catalog and answers read-only queries on it."""

    def __init__(self, path: str):
        self.path = path
        self.cards: Tuple[Card, ...] = ()
        self.load_all()

    def _read_frame(self) -> pd.DataFrame:
        if self.path.endswith(".csv"):
            return pd.read_csv(self.path, encoding="utf-8")
        with open(self.path, encoding="utf-8") as fh:
            raw = json.load(fh)
        records = raw.get("flashcards", []) if isinstance(raw, dict) else raw
        return pd.DataFrame.from_records(records)

    def load_all(self):
        self.cards = ()
        if not os.path.exists(self.path):
            logger.error(f"Catalog {self.path} not found. Loading sample cards.")
            self.load_records(SAMPLE_CARDS)
            return

        try:
            df = self._read_frame()
        except (OSError, ValueError) as e:
            logger.error(f"Failed to load {self.path}: {e}")
            self.load_records(SAMPLE_CARDS)
            return

        df = df.rename(columns=COLUMN_ALIASES)
        missing = [col for col in REQUIRED_COLUMNS if col not in df.columns]
        if missing:
            logger.error(f"Skipping {self.path}: Missing columns {missing}.")
            self.load_records(SAMPLE_CARDS)
            return

        for col in OPTIONAL_TEXT_COLUMNS:
            if col not in df.columns:
                df[col] = ""
        df[list(OPTIONAL_TEXT_COLUMNS)] = df[list(OPTIONAL_TEXT_COLUMNS)].fillna("")
        if "tier" not in df.columns:
            df["tier"] = None

        self.load_records(df.to_dict("records"))
        logger.info(f"Loaded {len(self.cards)} cards from {self.path}")

        duplicates = self.find_duplicates()
        if duplicates:
            logger.warning(
                f"{len(duplicates)} duplicate terms in catalog, e.g. "
                f"{[(card.id, card.term) for card in duplicates[:10]]}"
            )

    def load_records(self, records: List[Dict[str, Any]]):
        cards = []
        for record in records:
            record = dict(record, tier=_parse_tier(record.get("tier")))
            try:
                cards.append(Card(**record))
            except (ValidationError, TypeError) as e:
                logger.error(f"Skipping card {record.get('id')}: {e}")
        self.cards = tuple(cards)

    def get_cards(self, tier: Union[Tier, str, None] = ALL_TIERS) -> List[Card]:
        if tier == ALL_TIERS:
            return list(self.cards)
        return [card for card in self.cards if card.tier == tier]

    def get_tiers(self) -> List[Dict[str, Any]]:
        counts: Dict[str, int] = {}
        for card in self.cards:
            key = card.tier.value if card.tier else "unassigned"
            counts[key] = counts.get(key, 0) + 1
        tiers = [
            {"id": key, "name": key.title() if key == "unassigned" else key, "count": n}
            for key, n in counts.items()
        ]
        tiers.sort(key=lambda x: x["name"])
        return tiers

    def find_duplicates(self) -> List[Card]:
        """Cards whose term already appeared earlier in the catalog."""
        seen = set()
        duplicates = []
        for card in self.cards:
            if card.term in seen:
                duplicates.append(card)
            seen.add(card.term)
        return duplicates
