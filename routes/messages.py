from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from dependencies import get_current_user_id, get_db
from routes import RowId
from schemas.common import StatusOut
from schemas.messages import (
    CommentCreate,
    CommentSaved,
    DirectMessageCreate,
    DirectMessageSent,
    Forwarded,
    ForwardRequest,
)
from services import messaging as messaging_service

router = APIRouter(prefix="/messages")


@router.post("", response_model=DirectMessageSent, status_code=201)
async def send_direct(
    payload: DirectMessageCreate,
    db: AsyncSession = Depends(get_db),
    caller_id: str = Depends(get_current_user_id),
):
    conversation_id, message_id = await messaging_service.send_direct_message(
        db, caller_id, payload.to_user_id, payload.text
    )
    return DirectMessageSent(conversation_id=conversation_id, message_id=message_id)


@router.delete("/{message_id}", response_model=StatusOut)
async def delete_message(
    message_id: RowId,
    db: AsyncSession = Depends(get_db),
    caller_id: str = Depends(get_current_user_id),
):
    await messaging_service.delete_message(db, message_id, caller_id)
    return StatusOut(status="deleted")


@router.post("/{message_id}/forward", response_model=Forwarded)
async def forward_message(
    message_id: RowId,
    payload: ForwardRequest,
    db: AsyncSession = Depends(get_db),
    caller_id: str = Depends(get_current_user_id),
):
    new_id = await messaging_service.forward_message(
        db, message_id, caller_id, payload.conversation_id
    )
    return Forwarded(message_id=new_id)


@router.post("/{message_id}/comments", response_model=CommentSaved)
async def comment_message(
    message_id: RowId,
    payload: CommentCreate,
    db: AsyncSession = Depends(get_db),
    caller_id: str = Depends(get_current_user_id),
):
    comment_id = await messaging_service.comment_message(db, message_id, caller_id, payload.comment)
    return CommentSaved(comment_id=comment_id)


@router.delete("/{message_id}/comments", response_model=StatusOut)
async def uncomment_message(
    message_id: RowId,
    db: AsyncSession = Depends(get_db),
    caller_id: str = Depends(get_current_user_id),
):
    await messaging_service.uncomment_message(db, message_id, caller_id)
    return StatusOut(status="removed")
