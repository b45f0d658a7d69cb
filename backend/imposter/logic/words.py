"""Word pair sources and tier fallback.

A WordSource returns the pairs for one difficulty tier or raises
WordSourceError. pick_word_pair walks from the requested tier down to the
easiest one and finally falls back to a built-in emergency pair, so round
setup never fails for lack of words.
"""

from __future__ import annotations

import json
import random
from abc import ABC, abstractmethod
from pathlib import Path

import structlog
from pydantic import BaseModel, ValidationError

from imposter.logic.enums import Difficulty
from imposter.logic.exceptions import WordSourceError
from imposter.logic.types import WordPair

logger = structlog.get_logger()

EMERGENCY_PAIRS = (
    WordPair(word="Emergency", imposter_word="Fallback"),
    WordPair(word="Default", imposter_word="Words"),
)

DEFAULT_WORD_PAIRS: tuple[tuple[str, str], ...] = (
    ("Apple", "Orange"),
    ("Cat", "Dog"),
    ("Beach", "Desert"),
    ("Teacher", "Professor"),
    ("Plane", "Helicopter"),
    ("Milk", "Yogurt"),
    ("Table", "Chair"),
    ("Pizza", "Burger"),
    ("Mountain", "Hill"),
    ("River", "Stream"),
    ("Phone", "Tablet"),
    ("Sun", "Moon"),
    ("Rain", "Snow"),
    ("Tea", "Coffee"),
    ("Lion", "Tiger"),
    ("Pen", "Pencil"),
    ("Shirt", "Jacket"),
    ("School", "College"),
    ("Bus", "Train"),
    ("Butter", "Cheese"),
    ("Glass", "Cup"),
    ("Laptop", "Desktop"),
    ("Mirror", "Window"),
    ("Knife", "Scissors"),
    ("Foot", "Hand"),
    ("Book", "Magazine"),
    ("Camera", "Binoculars"),
    ("Boat", "Ship"),
    ("Ice", "Water"),
    ("Clock", "Watch"),
)


def _usable_pairs(pairs: list[WordPair]) -> list[WordPair]:
    return [pair for pair in pairs if pair.is_distinct]


class WordSource(ABC):
    """Supply word pairs for a difficulty tier."""

    @abstractmethod
    def load(self, difficulty: Difficulty) -> list[WordPair]:
        """Return usable pairs for the tier, or raise WordSourceError."""
        ...


class WordListFile(BaseModel):
    """On-disk layout of a tier file: {"word_pairs": [["a", "b"], ...]}."""

    word_pairs: list[tuple[str, str]]


class JsonWordSource(WordSource):
    """Read `<word_dir>/<difficulty>.json` files, cached after the first load."""

    def __init__(self, word_dir: str | Path) -> None:
        self._word_dir = Path(word_dir)
        self._cache: dict[Difficulty, list[WordPair]] = {}

    def load(self, difficulty: Difficulty) -> list[WordPair]:
        cached = self._cache.get(difficulty)
        if cached is not None:
            return cached

        path = self._word_dir / f"{difficulty.value}.json"
        try:
            raw = json.loads(path.read_text(encoding="utf-8"))
            parsed = WordListFile.model_validate(raw)
        except (OSError, json.JSONDecodeError, ValidationError) as e:
            raise WordSourceError(f"cannot load word list {path}: {e}") from e

        pairs = _usable_pairs([WordPair(word=a, imposter_word=b) for a, b in parsed.word_pairs])
        if not pairs:
            raise WordSourceError(f"word list {path} has no usable pairs")
        self._cache[difficulty] = pairs
        return pairs


class StaticWordSource(WordSource):
    """In-memory pairs per tier. Tiers without pairs fail like a missing file."""

    def __init__(self, pairs: dict[Difficulty, list[tuple[str, str]]] | None = None) -> None:
        if pairs is None:
            pairs = {Difficulty.EASY: list(DEFAULT_WORD_PAIRS)}
        self._pairs = {
            tier: _usable_pairs([WordPair(word=a, imposter_word=b) for a, b in tier_pairs])
            for tier, tier_pairs in pairs.items()
        }

    def load(self, difficulty: Difficulty) -> list[WordPair]:
        pairs = self._pairs.get(difficulty)
        if not pairs:
            raise WordSourceError(f"no word pairs for {difficulty.value}")
        return pairs


def pick_word_pair(source: WordSource, difficulty: Difficulty, rng: random.Random) -> WordPair:
    """Pick a random pair, falling back through easier tiers, then the emergency pair."""
    for tier in difficulty.easier_tiers:
        try:
            pairs = source.load(tier)
        except WordSourceError as e:
            logger.warning("word source fallback", difficulty=tier.value, error=str(e))
            continue
        return rng.choice(pairs)

    logger.error("word source exhausted, using emergency pair", difficulty=difficulty.value)
    return rng.choice(EMERGENCY_PAIRS)
