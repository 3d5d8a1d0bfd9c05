"""
Resilience card command handlers
"""

import base64
import binascii
from typing import Any, Dict

from herebefore_backend.core.errors import CheckInError
from herebefore_backend.models.requests import (
    CardIdRequest,
    CreateCardRequest,
    ListCardsRequest,
    UpdateCardRequest,
)
from herebefore_backend.system.runtime import get_runtime

from . import api_handler, raise_http_error, success_response


@api_handler(body=CreateCardRequest, method="POST", path="/cards/create", tags=["cards"])
async def create_card(body: CreateCardRequest) -> Dict[str, Any]:
    """Add a memory, delight or technique card"""
    try:
        image_data = (
            base64.b64decode(body.image_data, validate=True) if body.image_data else None
        )
        card = await get_runtime().cards.create_card(
            card_type=body.type,
            text=body.text,
            color=(body.color.red, body.color.green, body.color.blue),
            date=body.date,
            image_data=image_data,
        )
    except binascii.Error as e:
        raise_http_error(ValueError(f"imageData is not valid base64: {e}"), "Failed to create card")
    except (CheckInError, ValueError) as e:
        raise_http_error(e, "Failed to create card")
    return success_response(card.to_dict(), "Card created")


@api_handler(body=ListCardsRequest, method="POST", path="/cards/list", tags=["cards"])
async def list_cards(body: ListCardsRequest) -> Dict[str, Any]:
    try:
        cards = await get_runtime().cards.list_cards(body.type)
    except CheckInError as e:
        raise_http_error(e, "Failed to list cards")
    return success_response({"cards": [card.to_dict() for card in cards], "count": len(cards)})


@api_handler(body=UpdateCardRequest, method="POST", path="/cards/update", tags=["cards"])
async def update_card(body: UpdateCardRequest) -> Dict[str, Any]:
    try:
        card = await get_runtime().cards.update_card(
            body.card_id,
            text=body.text,
            color=(body.color.red, body.color.green, body.color.blue) if body.color else None,
            date=body.date,
        )
    except (CheckInError, ValueError) as e:
        raise_http_error(e, "Failed to update card")
    return success_response(card.to_dict())


@api_handler(body=CardIdRequest, method="POST", path="/cards/delete", tags=["cards"])
async def delete_card(body: CardIdRequest) -> Dict[str, Any]:
    try:
        await get_runtime().cards.delete_card(body.card_id)
    except CheckInError as e:
        raise_http_error(e, "Failed to delete card")
    return success_response({"id": body.card_id}, "Card deleted")
