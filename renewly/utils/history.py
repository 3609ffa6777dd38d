from __future__ import annotations

import logging
from collections import deque
from dataclasses import asdict, dataclass, field
from datetime import datetime
from typing import Any, Deque, Dict, Iterable, List, Optional

from renewly.models.records import utc_now

logger = logging.getLogger(__name__)

DEFAULT_CAPACITY = 15


@dataclass
class ConversationTurn:
    role: str  # user or assistant
    content: str
    timestamp: datetime = field(default_factory=utc_now)
    intent: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["timestamp"] = self.timestamp.isoformat()
        return {k: v for k, v in data.items() if v is not None}


class ConversationHistoryStore:
    """
    Bounded per-user conversation buffer. The oldest turn is dropped once a
    user holds ``capacity`` turns.

    Owned by whoever creates it (the FastAPI app keeps one on ``app.state``).
    """

    def __init__(self, capacity: int = DEFAULT_CAPACITY) -> None:
        if capacity < 1:
            raise ValueError("capacity must be at least 1")
        self.capacity = capacity
        self._turns: Dict[str, Deque[ConversationTurn]] = {}

    def get(self, user_id: str) -> List[ConversationTurn]:
        return list(self._turns.get(str(user_id), ()))

    def append(self, user_id: str, turn: ConversationTurn) -> None:
        key = str(user_id)
        if key not in self._turns:
            self._turns[key] = deque(maxlen=self.capacity)
        self._turns[key].append(turn)

    def extend(self, user_id: str, turns: Iterable[ConversationTurn]) -> None:
        for turn in turns:
            self.append(user_id, turn)

    def replace(self, user_id: str, turns: Iterable[ConversationTurn]) -> None:
        self._turns[str(user_id)] = deque(turns, maxlen=self.capacity)

    def clear(self, user_id: str) -> None:
        self._turns.pop(str(user_id), None)
        logger.info(f"Cleared conversation history for user {user_id}")
