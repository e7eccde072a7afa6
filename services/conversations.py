"""
Conversation lifecycle: groups and direct conversations, membership,
renaming, photos, and the read views (conversation detail and a user's
conversation list).

Every operation checks existence before membership, so a missing
conversation is reported as not found even to non-members.
"""

import logging
from typing import List, Optional

from sqlalchemy import delete, func, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import aliased

from errors import ConflictError, ForbiddenError, InvalidInputError, NotFoundError
from models import (
    Conversation,
    Message,
    MessageComment,
    User,
    UsersConversation,
    as_utc,
    direct_key,
)
from schemas.conversations import (
    CommentOut,
    ConversationDetail,
    ConversationSummary,
    MessageOut,
)
from storage import BlobStore, read_photo

logger = logging.getLogger(__name__)


# --- Lookups shared by the conversation and messaging services ---

async def get_conversation_or_404(db: AsyncSession, conversation_id: int) -> Conversation:
    convo = await db.get(Conversation, conversation_id)
    if not convo:
        raise NotFoundError("Conversation not found")
    return convo


async def get_group_or_404(db: AsyncSession, conversation_id: int) -> Conversation:
    convo = await get_conversation_or_404(db, conversation_id)
    if not convo.is_group:
        raise InvalidInputError("Bad request: Not a group conversation")
    return convo


async def is_member(db: AsyncSession, conversation_id: int, user_id: str) -> bool:
    stmt = (
        select(UsersConversation.user_id)
        .where(
            UsersConversation.conversation_id == conversation_id,
            UsersConversation.user_id == user_id,
        )
        .limit(1)
    )
    result = await db.execute(stmt)
    return result.first() is not None


async def require_member(db: AsyncSession, conversation_id: int, user_id: str):
    if not await is_member(db, conversation_id, user_id):
        raise ForbiddenError("You are not a member of this conversation")


async def user_exists(db: AsyncSession, user_id: str) -> bool:
    return await db.get(User, user_id) is not None


# --- Lifecycle ---

async def create_conversation(
    db: AsyncSession, name: Optional[str], is_group: bool, creator_id: str
) -> int:
    """
    Create a conversation with the creator as its only member.
    The conversation row and the membership are committed together.
    """
    if not await user_exists(db, creator_id):
        raise NotFoundError("User not found")

    convo = Conversation(name=name, is_group=is_group)
    db.add(convo)
    await db.flush()  # so convo.id is available

    db.add(UsersConversation(conversation_id=convo.id, user_id=creator_id))
    await db.commit()

    logger.info(f"[conversations] {creator_id} created conversation {convo.id} (group={is_group})")
    return convo.id


async def find_direct_conversation(db: AsyncSession, user_a: str, user_b: str) -> Optional[int]:
    stmt = select(Conversation.id).where(
        Conversation.direct_key == direct_key(user_a, user_b),
        Conversation.is_group.is_(False),
    )
    result = await db.execute(stmt)
    return result.scalar_one_or_none()


async def find_or_create_direct(db: AsyncSession, user_a: str, user_b: str) -> int:
    """
    Return the direct conversation between two users, creating it with both
    members if it does not exist yet. The unique direct_key makes concurrent
    creators converge on a single conversation.
    """
    existing_id = await find_direct_conversation(db, user_a, user_b)
    if existing_id is not None:
        return existing_id

    convo = Conversation(name=None, is_group=False, direct_key=direct_key(user_a, user_b))
    db.add(convo)
    try:
        await db.flush()
    except IntegrityError:
        await db.rollback()
        existing_id = await find_direct_conversation(db, user_a, user_b)
        if existing_id is None:
            raise
        logger.warning(
            f"[conversations] Direct conversation {user_a}/{user_b} created concurrently, "
            f"reusing {existing_id}"
        )
        return existing_id

    db.add_all(
        [
            UsersConversation(conversation_id=convo.id, user_id=user_a),
            UsersConversation(conversation_id=convo.id, user_id=user_b),
        ]
    )
    await db.commit()

    logger.info(f"[conversations] Created direct conversation {convo.id} for {user_a}/{user_b}")
    return convo.id


# --- Group management ---

async def add_member(db: AsyncSession, conversation_id: int, caller_id: str, user_id: str):
    await get_group_or_404(db, conversation_id)
    await require_member(db, conversation_id, caller_id)

    user_id = (user_id or "").strip()
    if not user_id:
        raise InvalidInputError("Bad request: userId is required")
    if not await user_exists(db, user_id):
        raise NotFoundError("User not found")
    if await is_member(db, conversation_id, user_id):
        raise ConflictError("Bad request: user is already a member")

    db.add(UsersConversation(conversation_id=conversation_id, user_id=user_id))
    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        raise ConflictError("Bad request: user is already a member")

    logger.info(f"[conversations] {caller_id} added {user_id} to group {conversation_id}")


async def leave_group(db: AsyncSession, conversation_id: int, user_id: str):
    await get_group_or_404(db, conversation_id)

    if not await is_member(db, conversation_id, user_id):
        raise NotFoundError("Not found")

    result = await db.execute(
        delete(UsersConversation).where(
            UsersConversation.conversation_id == conversation_id,
            UsersConversation.user_id == user_id,
        )
    )
    if result.rowcount == 0:
        await db.rollback()
        raise NotFoundError("Not found")
    await db.commit()

    logger.info(f"[conversations] {user_id} left group {conversation_id}")


async def rename_group(db: AsyncSession, conversation_id: int, caller_id: str, name: str) -> str:
    name = (name or "").strip()
    if not name:
        raise InvalidInputError("Bad request: name is required")

    await get_group_or_404(db, conversation_id)
    await require_member(db, conversation_id, caller_id)

    await db.execute(
        update(Conversation).where(Conversation.id == conversation_id).values(name=name)
    )
    await db.commit()
    return name


async def set_group_photo(
    db: AsyncSession, store: BlobStore, conversation_id: int, caller_id: str, photo
) -> str:
    await get_group_or_404(db, conversation_id)
    await require_member(db, conversation_id, caller_id)

    data, ext = await read_photo(photo)
    url = await store.put("groups", str(conversation_id), ext, data)

    await db.execute(
        update(Conversation).where(Conversation.id == conversation_id).values(photo_url=url)
    )
    await db.commit()
    return url


# --- Read views ---

async def get_participant_names(db: AsyncSession, conversation_id: int) -> List[str]:
    stmt = (
        select(User.username)
        .join(UsersConversation, UsersConversation.user_id == User.id)
        .where(UsersConversation.conversation_id == conversation_id)
        .order_by(User.username)
    )
    result = await db.execute(stmt)
    return list(result.scalars().all())


async def get_conversation_detail(
    db: AsyncSession, conversation_id: int, caller_id: str
) -> ConversationDetail:
    convo = await get_conversation_or_404(db, conversation_id)
    await require_member(db, conversation_id, caller_id)

    participants = await get_participant_names(db, conversation_id)

    msg_rows = await db.execute(
        select(Message, User.username)
        .join(User, User.id == Message.sender_id)
        .where(Message.conversation_id == conversation_id)
        .order_by(Message.sent_at.desc(), Message.id.desc())
    )
    messages = msg_rows.all()

    comments_by_message = {}
    if messages:
        comment_rows = await db.execute(
            select(MessageComment, User.username)
            .join(User, User.id == MessageComment.user_id)
            .where(MessageComment.message_id.in_([m.id for m, _ in messages]))
            .order_by(MessageComment.commented_at.asc(), MessageComment.id.asc())
        )
        for comment, username in comment_rows.all():
            comments_by_message.setdefault(comment.message_id, []).append(
                CommentOut(
                    user_id=comment.user_id,
                    username=username,
                    comment=comment.comment,
                    timestamp=as_utc(comment.commented_at),
                )
            )

    return ConversationDetail(
        id=convo.id,
        name=convo.name,
        is_group=convo.is_group,
        photo_url=convo.photo_url,
        participants=participants,
        messages=[
            MessageOut(
                id=m.id,
                sender_id=m.sender_id,
                sender=sender_name,
                text=m.text,
                timestamp=as_utc(m.sent_at),
                comments=comments_by_message.get(m.id, []),
            )
            for m, sender_name in messages
        ],
    )


async def list_conversations_for_user(db: AsyncSession, user_id: str) -> List[ConversationSummary]:
    """
    All conversations of 'user_id', most recently active first.

    Direct conversations have no name or photo of their own; they borrow the
    other participant's username and photo.
    """
    latest = aliased(Message)
    other = aliased(UsersConversation)

    def last_message(column):
        return (
            select(column)
            .where(latest.conversation_id == Conversation.id)
            .order_by(latest.sent_at.desc(), latest.id.desc())
            .limit(1)
            .correlate(Conversation)
            .scalar_subquery()
        )

    def other_participant(column):
        return (
            select(column)
            .join(other, other.user_id == User.id)
            .where(other.conversation_id == Conversation.id, other.user_id != user_id)
            .order_by(User.username)
            .limit(1)
            .correlate(Conversation)
            .scalar_subquery()
        )

    last_text = last_message(latest.text)
    last_at = last_message(latest.sent_at)

    stmt = (
        select(
            Conversation,
            last_text.label("last_text"),
            last_at.label("last_at"),
            other_participant(User.username).label("other_name"),
            other_participant(User.photo_url).label("other_photo"),
        )
        .join(UsersConversation, UsersConversation.conversation_id == Conversation.id)
        .where(UsersConversation.user_id == user_id)
        .order_by(func.coalesce(last_at, Conversation.created_at).desc(), Conversation.id.desc())
    )
    result = await db.execute(stmt)

    summaries = []
    for convo, text, sent_at, other_name, other_photo in result.all():
        if convo.is_group or (convo.name or "").strip():
            name = convo.name
        else:
            name = other_name

        if convo.is_group:
            photo_url = convo.photo_url if (convo.photo_url or "").strip() else None
        else:
            photo_url = other_photo

        summaries.append(
            ConversationSummary(
                id=convo.id,
                name=name,
                is_group=convo.is_group,
                last_message_text=text,
                last_message_at=as_utc(sent_at),
                photo_url=photo_url,
            )
        )
    return summaries
