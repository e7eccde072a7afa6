import logging

from sqlalchemy import delete, select
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.ext.asyncio import AsyncSession

from errors import ForbiddenError, InvalidInputError, NotFoundError
from models import Message, MessageComment, utcnow
from services.conversations import (
    find_or_create_direct,
    get_conversation_or_404,
    require_member,
    user_exists,
)

logger = logging.getLogger(__name__)

_UPSERT_DIALECTS = {
    "sqlite": sqlite.insert,
    "postgresql": postgresql.insert,
}


async def get_message_or_404(db: AsyncSession, message_id: int) -> Message:
    message = await db.get(Message, message_id)
    if not message:
        raise NotFoundError("Message not found")
    return message


async def _insert_message(db: AsyncSession, conversation_id: int, sender_id: str, text: str) -> int:
    message = Message(conversation_id=conversation_id, sender_id=sender_id, text=text)
    db.add(message)
    await db.commit()
    return message.id


async def send_message(db: AsyncSession, conversation_id: int, sender_id: str, text: str) -> int:
    await get_conversation_or_404(db, conversation_id)
    await require_member(db, conversation_id, sender_id)

    if not (text or "").strip():
        raise InvalidInputError("Bad request: text is required")

    message_id = await _insert_message(db, conversation_id, sender_id, text)
    logger.debug(f"[messaging] {sender_id} sent message {message_id} to {conversation_id}")
    return message_id


async def send_direct_message(db: AsyncSession, sender_id: str, recipient_id: str, text: str):
    """
    Send 'text' to 'recipient_id', opening the direct conversation between
    the two users if needed. Returns (conversation_id, message_id).
    """
    recipient_id = (recipient_id or "").strip()
    if not recipient_id or not (text or "").strip():
        raise InvalidInputError("Bad request: toUserId and text are required")
    if recipient_id == sender_id:
        raise InvalidInputError("Bad request: cannot message yourself")
    if not await user_exists(db, recipient_id):
        raise NotFoundError("User not found")
    if not await user_exists(db, sender_id):
        raise NotFoundError("User not found")

    conversation_id = await find_or_create_direct(db, sender_id, recipient_id)
    message_id = await send_message(db, conversation_id, sender_id, text)
    return conversation_id, message_id


async def forward_message(
    db: AsyncSession, message_id: int, caller_id: str, dest_conversation_id: int
) -> int:
    if dest_conversation_id <= 0:
        raise InvalidInputError("Bad request: conversationId is required")

    await get_conversation_or_404(db, dest_conversation_id)
    await require_member(db, dest_conversation_id, caller_id)

    source = await get_message_or_404(db, message_id)
    await require_member(db, source.conversation_id, caller_id)

    # only the text travels; the forwarder becomes the sender
    new_id = await _insert_message(db, dest_conversation_id, caller_id, source.text)
    logger.info(
        f"[messaging] {caller_id} forwarded message {message_id} "
        f"to conversation {dest_conversation_id} as {new_id}"
    )
    return new_id


async def delete_message(db: AsyncSession, message_id: int, caller_id: str):
    result = await db.execute(
        delete(Message).where(Message.id == message_id, Message.sender_id == caller_id)
    )
    if result.rowcount == 0:
        await db.rollback()
        exists = await db.execute(select(Message.id).where(Message.id == message_id))
        if exists.first() is None:
            raise NotFoundError("Message not found")
        raise ForbiddenError("You can only delete your own messages")

    await db.commit()
    logger.info(f"[messaging] {caller_id} deleted message {message_id}")


async def comment_message(db: AsyncSession, message_id: int, caller_id: str, comment: str) -> int:
    """
    Set the caller's comment on a message. A second comment by the same
    user replaces the text and timestamp of the first.
    """
    if not (comment or "").strip():
        raise InvalidInputError("Bad request: comment is required")

    message = await get_message_or_404(db, message_id)
    await require_member(db, message.conversation_id, caller_id)

    dialect = db.get_bind().dialect.name
    insert = _UPSERT_DIALECTS.get(dialect)
    if insert is None:
        raise RuntimeError(f"Comment upsert is not supported on {dialect}")

    now = utcnow()
    stmt = insert(MessageComment).values(
        message_id=message_id, user_id=caller_id, comment=comment, commented_at=now
    )
    stmt = stmt.on_conflict_do_update(
        index_elements=[MessageComment.message_id, MessageComment.user_id],
        set_={"comment": stmt.excluded.comment, "commented_at": stmt.excluded.commented_at},
    ).returning(MessageComment.id)

    result = await db.execute(stmt)
    comment_id = result.scalar_one()
    await db.commit()
    return comment_id


async def uncomment_message(db: AsyncSession, message_id: int, caller_id: str):
    message = await get_message_or_404(db, message_id)
    await require_member(db, message.conversation_id, caller_id)

    result = await db.execute(
        delete(MessageComment).where(
            MessageComment.message_id == message_id,
            MessageComment.user_id == caller_id,
        )
    )
    if result.rowcount == 0:
        await db.rollback()
        raise NotFoundError("Comment not found")
    await db.commit()
