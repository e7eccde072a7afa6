from typing import List

from fastapi import APIRouter, Depends, File, UploadFile
from sqlalchemy.ext.asyncio import AsyncSession

from dependencies import get_blob_store, get_current_user_id, get_db
from schemas.common import PhotoUploaded
from schemas.conversations import ConversationSummary
from schemas.users import UsernameOut, UsernameUpdate, UserOut
from services import conversations as conversation_service
from services import users as user_service
from storage import BlobStore

router = APIRouter()


def to_user_out(user) -> UserOut:
    return UserOut(id=user.id, name=user.username, photo_url=user.photo_url)


@router.get("/users", response_model=List[UserOut])
async def search_users(
    q: str = "",
    db: AsyncSession = Depends(get_db),
    caller_id: str = Depends(get_current_user_id),
):
    return [to_user_out(u) for u in await user_service.list_users(db, q.strip())]


@router.get("/user/{user_id}", response_model=UserOut)
async def get_user(
    user_id: str,
    db: AsyncSession = Depends(get_db),
    caller_id: str = Depends(get_current_user_id),
):
    return to_user_out(await user_service.get_user_or_404(db, user_id))


@router.put("/me/username", response_model=UsernameOut)
async def set_my_username(
    data: UsernameUpdate,
    db: AsyncSession = Depends(get_db),
    caller_id: str = Depends(get_current_user_id),
):
    name = await user_service.rename_user(db, caller_id, data.name)
    return UsernameOut(name=name)


@router.put("/me/photo", response_model=PhotoUploaded)
async def set_my_photo(
    photo: UploadFile = File(...),
    db: AsyncSession = Depends(get_db),
    store: BlobStore = Depends(get_blob_store),
    caller_id: str = Depends(get_current_user_id),
):
    url = await user_service.set_user_photo(db, store, caller_id, photo)
    return PhotoUploaded(url=url)


@router.get("/me/conversations", response_model=List[ConversationSummary])
async def my_conversations(
    db: AsyncSession = Depends(get_db),
    caller_id: str = Depends(get_current_user_id),
):
    return await conversation_service.list_conversations_for_user(db, caller_id)
