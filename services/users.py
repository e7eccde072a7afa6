import logging
import uuid
from typing import List, Optional

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from config import USERNAME_MAX_LENGTH, USERNAME_MIN_LENGTH
from errors import ConflictError, InvalidInputError, NotFoundError
from models import User
from storage import BlobStore, read_photo

logger = logging.getLogger(__name__)


def validate_username(name: str) -> str:
    name = (name or "").strip()
    if not (USERNAME_MIN_LENGTH <= len(name) <= USERNAME_MAX_LENGTH):
        raise InvalidInputError(
            f"Name must be between {USERNAME_MIN_LENGTH} and {USERNAME_MAX_LENGTH} characters"
        )
    return name


async def get_user_by_name(db: AsyncSession, username: str) -> Optional[User]:
    result = await db.execute(select(User).where(User.username == username))
    return result.scalar_one_or_none()


async def get_user_or_404(db: AsyncSession, user_id: str) -> User:
    user = await db.get(User, user_id)
    if not user:
        raise NotFoundError("User not found")
    return user


async def login(db: AsyncSession, name: str) -> str:
    """
    Return the id of the user called 'name', creating the user on first login.
    """
    name = validate_username(name)

    existing_user = await get_user_by_name(db, name)
    if existing_user:
        return existing_user.id

    new_user = User(id=str(uuid.uuid4()), username=name)
    db.add(new_user)
    try:
        await db.commit()
    except IntegrityError:
        # someone else registered the same name in the meantime
        await db.rollback()
        winner = await get_user_by_name(db, name)
        if winner is None:
            raise
        logger.warning(f"[users] Concurrent login for {name!r}, using {winner.id}")
        return winner.id

    logger.info(f"[users] Created user {new_user.id} ({name})")
    return new_user.id


async def list_users(db: AsyncSession, q: str = "") -> List[User]:
    stmt = select(User).order_by(User.username)
    if q:
        stmt = stmt.where(User.username.startswith(q, autoescape=True))
    result = await db.execute(stmt)
    return list(result.scalars().all())


async def rename_user(db: AsyncSession, user_id: str, name: str) -> str:
    name = validate_username(name)
    await get_user_or_404(db, user_id)

    owner = await get_user_by_name(db, name)
    if owner and owner.id != user_id:
        raise ConflictError("Bad request: name already taken")

    await db.execute(update(User).where(User.id == user_id).values(username=name))
    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        raise ConflictError("Bad request: name already taken")

    logger.info(f"[users] User {user_id} renamed to {name}")
    return name


async def set_user_photo(db: AsyncSession, store: BlobStore, user_id: str, photo) -> str:
    await get_user_or_404(db, user_id)

    data, ext = await read_photo(photo)
    url = await store.put("users", user_id, ext, data)

    await db.execute(update(User).where(User.id == user_id).values(photo_url=url))
    await db.commit()
    return url
