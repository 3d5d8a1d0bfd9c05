"""
Cards Repository - Resilience cards (memories, delights, techniques)
"""

import sqlite3
from pathlib import Path
from typing import List

from herebefore_backend.core.errors import PersistenceFailure, RecordNotFound
from herebefore_backend.core.logger import get_logger
from herebefore_backend.core.models import Card, CardType
from herebefore_backend.core.sqls import queries

from .base import BaseRepository, from_iso, to_iso

logger = get_logger(__name__)


def _card_params(card: Card) -> tuple:
    red, green, blue = card.color
    return (
        card.type.value,
        card.text,
        red,
        green,
        blue,
        to_iso(card.date),
        card.image_data,
    )


class CardsRepository(BaseRepository):
    """Repository for resilience cards"""

    def __init__(self, db_path: Path):
        super().__init__(db_path)

    def insert(self, card: Card) -> None:
        try:
            with self._get_conn() as conn:
                conn.execute(
                    queries.INSERT_CARD,
                    (card.id, *_card_params(card), card.created_at.isoformat()),
                )
                conn.commit()
            logger.debug(f"Inserted {card.type.value} card: {card.id}")
        except sqlite3.Error as e:
            logger.error(f"Failed to insert card {card.id}: {e}", exc_info=True)
            raise PersistenceFailure(f"Failed to insert card {card.id}") from e

    def update(self, card: Card) -> None:
        try:
            with self._get_conn() as conn:
                cursor = conn.execute(queries.UPDATE_CARD, (*_card_params(card), card.id))
                conn.commit()
        except sqlite3.Error as e:
            logger.error(f"Failed to update card {card.id}: {e}", exc_info=True)
            raise PersistenceFailure(f"Failed to update card {card.id}") from e
        if cursor.rowcount == 0:
            raise RecordNotFound(f"Card not found: {card.id}")

    def delete(self, card_id: str) -> None:
        try:
            with self._get_conn() as conn:
                cursor = conn.execute(queries.DELETE_CARD, (card_id,))
                conn.commit()
        except sqlite3.Error as e:
            logger.error(f"Failed to delete card {card_id}: {e}", exc_info=True)
            raise PersistenceFailure(f"Failed to delete card {card_id}") from e
        if cursor.rowcount == 0:
            raise RecordNotFound(f"Card not found: {card_id}")

    def get_all(self) -> List[Card]:
        """All cards, newest first"""
        try:
            with self._get_conn() as conn:
                rows = conn.execute(queries.SELECT_CARDS).fetchall()
        except sqlite3.Error as e:
            logger.error(f"Failed to get cards: {e}", exc_info=True)
            raise PersistenceFailure("Failed to get cards") from e

        return [
            Card(
                id=row["id"],
                type=CardType(row["type"]),
                text=row["text"],
                color=(row["color_red"], row["color_green"], row["color_blue"]),
                created_at=from_iso(row["created_at"]),
                date=from_iso(row["date"]),
                image_data=bytes(row["image_data"]) if row["image_data"] is not None else None,
            )
            for row in rows
        ]
