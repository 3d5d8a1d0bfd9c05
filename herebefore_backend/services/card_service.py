"""
Card service
Resilience card deck: memories, delights and techniques
"""

from datetime import datetime
from typing import List, Optional, Tuple

from herebefore_backend.core.clock import Clock
from herebefore_backend.core.errors import RecordNotFound
from herebefore_backend.core.logger import get_logger
from herebefore_backend.core.models import Card, CardType, new_id
from herebefore_backend.core.protocols import PersistenceStoreProtocol

logger = get_logger(__name__)

Color = Tuple[float, float, float]


def _check_color(color: Color) -> Color:
    if len(color) != 3:
        raise ValueError(f"Color needs red, green and blue components: {color!r}")
    for component in color:
        if not 0.0 <= float(component) <= 1.0:
            raise ValueError(f"Color component out of range [0, 1]: {component}")
    return tuple(float(component) for component in color)


class CardService:
    """CRUD over the card deck"""

    def __init__(self, store: PersistenceStoreProtocol, clock: Clock):
        self.store = store
        self.clock = clock

    async def create_card(
        self,
        card_type: CardType,
        text: str,
        color: Color,
        date: Optional[datetime] = None,
        image_data: Optional[bytes] = None,
    ) -> Card:
        text = text.strip()
        if card_type is not CardType.MEMORY and date is not None:
            raise ValueError("Only memory cards carry a date")
        if card_type is not CardType.DELIGHT and image_data is not None:
            raise ValueError("Only delight cards carry an image")
        if not text and image_data is None:
            raise ValueError("Card needs text or an image")

        card = Card(
            id=new_id(),
            type=card_type,
            text=text,
            color=_check_color(color),
            created_at=self.clock.now(),
            date=date,
            image_data=image_data,
        )
        await self.store.insert_card(card)
        logger.info(f"Created {card_type.value} card {card.id}")
        return card

    async def list_cards(self, card_type: Optional[CardType] = None) -> List[Card]:
        cards = await self.store.list_cards()
        if card_type is not None:
            cards = [card for card in cards if card.type is card_type]
        return cards

    async def get_card(self, card_id: str) -> Card:
        for card in await self.store.list_cards():
            if card.id == card_id:
                return card
        raise RecordNotFound(f"Card not found: {card_id}")

    async def update_card(
        self,
        card_id: str,
        text: Optional[str] = None,
        color: Optional[Color] = None,
        date: Optional[datetime] = None,
    ) -> Card:
        card = await self.get_card(card_id)
        if text is not None:
            card.text = text.strip()
        if color is not None:
            card.color = _check_color(color)
        if date is not None:
            if card.type is not CardType.MEMORY:
                raise ValueError("Only memory cards carry a date")
            card.date = date
        await self.store.update_card(card)
        return card

    async def delete_card(self, card_id: str) -> None:
        await self.store.delete_card(card_id)
        logger.info(f"Deleted card {card_id}")
