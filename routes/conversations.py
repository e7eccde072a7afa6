from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from dependencies import get_current_user_id, get_db
from errors import InvalidInputError
from routes import RowId
from schemas.conversations import ConversationCreate, ConversationCreated, ConversationDetail
from schemas.messages import MessageCreate, MessageSent
from services import conversations as conversation_service
from services import messaging as messaging_service

router = APIRouter()


@router.post("/conversations", response_model=ConversationCreated, status_code=201)
async def create_group(
    payload: ConversationCreate,
    db: AsyncSession = Depends(get_db),
    caller_id: str = Depends(get_current_user_id),
):
    # direct conversations are opened by POST /messages
    name = (payload.name or "").strip()
    if not payload.is_group or not name:
        raise InvalidInputError("Bad request: a group needs isGroup=true and a name")

    conversation_id = await conversation_service.create_conversation(db, name, True, caller_id)
    return ConversationCreated(conversation_id=conversation_id)


@router.get("/conversations/{conversation_id}", response_model=ConversationDetail)
async def get_conversation(
    conversation_id: RowId,
    db: AsyncSession = Depends(get_db),
    caller_id: str = Depends(get_current_user_id),
):
    return await conversation_service.get_conversation_detail(db, conversation_id, caller_id)


@router.post(
    "/conversations/{conversation_id}/messages", response_model=MessageSent, status_code=201
)
async def send_message(
    conversation_id: RowId,
    payload: MessageCreate,
    db: AsyncSession = Depends(get_db),
    caller_id: str = Depends(get_current_user_id),
):
    message_id = await messaging_service.send_message(db, conversation_id, caller_id, payload.text)
    return MessageSent(message_id=message_id)
