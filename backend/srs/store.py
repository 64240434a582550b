"""Durable card storage keyed by item id.

Cards live in a ``KeyValueStore`` under ``<namespace>:card:<item_id>``
as JSON. A record that cannot be decoded is treated as absent: losing one
item's progress is preferable to blocking a review session.
"""

import json
import logging
from collections.abc import Iterator
from datetime import datetime

from backend.config import as_naive_utc, settings, utcnow
from backend.srs.card import DifficultyTag, ReviewCard
from backend.srs.kv import KeyValueStore

logger = logging.getLogger(__name__)

_DECODE_ERRORS = (json.JSONDecodeError, UnicodeDecodeError, KeyError, TypeError, ValueError)


class CardStore:
    """Create/read/update access to review cards for the local learner."""

    def __init__(self, kv: KeyValueStore, namespace: str | None = None) -> None:
        self.kv = kv
        self.namespace = namespace or settings.key_namespace

    @property
    def prefix(self) -> str:
        return f"{self.namespace}:card:"

    def key_for(self, item_id: str) -> str:
        return f"{self.prefix}{item_id}"

    def get(
        self,
        item_id: str,
        category: str,
        difficulty_tag: DifficultyTag | str,
        now: datetime | None = None,
    ) -> ReviewCard:
        """Return the card for ``item_id``, creating and persisting a default one if missing.

        ``category`` and ``difficulty_tag`` are only used for a newly created card;
        an existing card keeps its stored tags.
        """
        existing = self.find(item_id)
        if existing is not None:
            return existing

        card = ReviewCard.new(item_id, category, difficulty_tag, now=now or utcnow())
        self.put(card)
        logger.debug("Created review card for %s (category=%s)", item_id, category)
        return card

    def find(self, item_id: str) -> ReviewCard | None:
        """Return the stored card, or None if absent or unreadable. Never creates."""
        key = self.key_for(item_id)
        raw = self.kv.read(key)
        if raw is None:
            return None
        return self._decode(key, raw)

    def contains(self, item_id: str) -> bool:
        return self.find(item_id) is not None

    def put(self, card: ReviewCard) -> None:
        """Upsert ``card``, overwriting any existing record for its item id."""
        self.kv.write(self.key_for(card.item_id), card.to_json())

    def list_all(self) -> list[ReviewCard]:
        """All readable cards, in no particular order."""
        return list(self._iter_cards())

    def list_due(self, as_of: datetime) -> list[ReviewCard]:
        """Cards with ``due_at <= as_of``, earliest first, ties broken by item id."""
        as_of = as_naive_utc(as_of)
        due = [card for card in self._iter_cards() if card.is_due(as_of)]
        due.sort(key=lambda card: (card.due_at, card.item_id))
        return due

    def _iter_cards(self) -> Iterator[ReviewCard]:
        for key, raw in self.kv.scan(self.prefix):
            card = self._decode(key, raw)
            if card is not None:
                yield card

    def _decode(self, key: str, raw: bytes) -> ReviewCard | None:
        try:
            return ReviewCard.from_json(raw)
        except _DECODE_ERRORS:
            logger.warning("Ignoring malformed review card record at %s", key)
            return None
