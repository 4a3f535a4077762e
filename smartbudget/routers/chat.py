from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from smartbudget.db import get_db
from smartbudget.deps.user import current_user_id
from smartbudget.schemas.goals import ChatRequest, ChatResponse
from smartbudget.services.chat import process_chat

router = APIRouter(tags=["chat"])


@router.post("/chat", response_model=ChatResponse)
def chat(
    body: ChatRequest,
    user_id: str = Depends(current_user_id),
    db: Session = Depends(get_db),
):
    conversation = [m.model_dump() for m in body.conversation]
    result = process_chat(db, user_id, conversation)
    return {
        "assistant_message": result.assistant_message,
        "intent": result.intent,
        "updated_goals": result.updated_goals,
    }
