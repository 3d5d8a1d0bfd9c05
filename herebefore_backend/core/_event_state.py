"""
Shared event subscription state, so every import path sees the same subscribers.
"""

from collections import defaultdict
from dataclasses import dataclass, field
from typing import Any, Callable, DefaultDict, Dict, List

EventCallback = Callable[[str, Dict[str, Any]], Any]


@dataclass
class EventState:
    subscribers: DefaultDict[str, List[EventCallback]] = field(
        default_factory=lambda: defaultdict(list)
    )


event_state = EventState()
