from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from bazaar.api.deps import get_db, get_current_user
from bazaar.db.models.user_model import User
from bazaar.schemas.market_schema import (
    ConversationOut,
    MessageCreate,
    MessageOut,
    MessageUpdate,
    ReportCreate,
    ReportOut,
)
from bazaar.services.chat_service import ChatService
from bazaar.services.report_service import ReportService

router = APIRouter(prefix="/chat", tags=["Chat"])
service = ChatService()
report_service = ReportService()

@router.get("/public", response_model=List[MessageOut])
def get_public_messages(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    return service.list_public(db)

@router.post("/messages", response_model=MessageOut, status_code=201)
def send_message(
    data: MessageCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    return service.send_message(db, data.content, current_user, data.recipient)

@router.patch("/messages/{message_id}", response_model=MessageOut)
def edit_message(
    message_id: str,
    data: MessageUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    return service.edit_message(db, message_id, data.content, current_user)

@router.delete("/messages/{message_id}", status_code=204)
def delete_message(
    message_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    service.delete_message(db, message_id, current_user)

@router.post("/messages/{message_id}/report", response_model=ReportOut, status_code=201)
def report_message(
    message_id: str,
    data: ReportCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    return report_service.report_message(db, message_id, data.reason, current_user)

@router.get("/private", response_model=List[ConversationOut])
def get_conversations(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    return service.list_conversations(db, current_user)

@router.get("/private/{username}", response_model=List[MessageOut])
def get_conversation(
    username: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    return service.list_conversation(db, current_user, username)
