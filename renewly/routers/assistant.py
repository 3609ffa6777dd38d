"""
Assistant Router
Builds grounding context for the conversational assistant and manages the
per-user conversation history
"""
import logging
from typing import Dict, Optional

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel, Field

from renewly.models.records import FinancialSnapshot
from renewly.routers.dependencies import get_analyzer, get_history_store
from renewly.utils.analyzer import InsightsAnalyzer
from renewly.utils.history import ConversationHistoryStore, ConversationTurn

router = APIRouter()
logger = logging.getLogger(__name__)


class ContextRequest(BaseModel):
    query: str
    snapshot: FinancialSnapshot = Field(default_factory=FinancialSnapshot)


class TurnCreate(BaseModel):
    role: str = "assistant"
    content: str
    intent: Optional[str] = None


@router.post("/{user_id}/context")
def build_context(
    user_id: str,
    request: ContextRequest,
    analyzer: InsightsAnalyzer = Depends(get_analyzer),
    history: ConversationHistoryStore = Depends(get_history_store),
) -> Dict:
    query = request.query.strip()
    if not query:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="A query is required")

    try:
        context = analyzer.assistant_context(user_id, request.snapshot, history)
    except Exception as e:
        logger.error(f"Error building assistant context for user {user_id}: {str(e)}", exc_info=True)
        raise HTTPException(status_code=500, detail=f"Error building assistant context: {str(e)}")

    history.append(user_id, ConversationTurn(role="user", content=query))
    context["query"] = query
    return context


@router.post("/{user_id}/history", status_code=status.HTTP_201_CREATED)
def record_turn(
    user_id: str,
    turn: TurnCreate,
    history: ConversationHistoryStore = Depends(get_history_store),
) -> Dict:
    """Store a reply produced by the text-generation provider."""
    if turn.role not in ("user", "assistant"):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="role must be user or assistant")
    history.append(user_id, ConversationTurn(role=turn.role, content=turn.content, intent=turn.intent))
    return {"user_id": user_id, "count": len(history.get(user_id))}


@router.get("/{user_id}/history")
def get_history(user_id: str, history: ConversationHistoryStore = Depends(get_history_store)) -> Dict:
    turns = history.get(user_id)
    return {"user_id": user_id, "turns": [turn.to_dict() for turn in turns], "count": len(turns)}


@router.delete("/{user_id}/history", status_code=status.HTTP_204_NO_CONTENT)
def clear_history(user_id: str, history: ConversationHistoryStore = Depends(get_history_store)):
    history.clear(user_id)
    return None
