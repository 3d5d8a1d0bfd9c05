"""
Service layer
"""

from .badge_service import BadgeService
from .card_service import CardService
from .check_in_service import CheckInService, PendingCheckIn

__all__ = ["BadgeService", "CardService", "CheckInService", "PendingCheckIn"]
