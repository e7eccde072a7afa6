from fastapi import APIRouter, Depends, File, UploadFile
from sqlalchemy.ext.asyncio import AsyncSession

from dependencies import get_blob_store, get_current_user_id, get_db
from routes import RowId
from schemas.common import PhotoUploaded, StatusOut
from schemas.conversations import GroupRename, GroupRenamed, MemberAdd
from services import conversations as conversation_service
from storage import BlobStore

router = APIRouter(prefix="/groups")


@router.post("/{conversation_id}/members", response_model=StatusOut)
async def add_member(
    conversation_id: RowId,
    payload: MemberAdd,
    db: AsyncSession = Depends(get_db),
    caller_id: str = Depends(get_current_user_id),
):
    await conversation_service.add_member(db, conversation_id, caller_id, payload.user_id)
    return StatusOut(status="Added")


@router.delete("/{conversation_id}/members", response_model=StatusOut)
async def leave_group(
    conversation_id: RowId,
    db: AsyncSession = Depends(get_db),
    caller_id: str = Depends(get_current_user_id),
):
    await conversation_service.leave_group(db, conversation_id, caller_id)
    return StatusOut(status="Left")


@router.put("/{conversation_id}/name", response_model=GroupRenamed)
async def rename_group(
    conversation_id: RowId,
    payload: GroupRename,
    db: AsyncSession = Depends(get_db),
    caller_id: str = Depends(get_current_user_id),
):
    name = await conversation_service.rename_group(db, conversation_id, caller_id, payload.name)
    return GroupRenamed(name=name)


@router.put("/{conversation_id}/photo", response_model=PhotoUploaded)
async def set_group_photo(
    conversation_id: RowId,
    photo: UploadFile = File(...),
    db: AsyncSession = Depends(get_db),
    store: BlobStore = Depends(get_blob_store),
    caller_id: str = Depends(get_current_user_id),
):
    url = await conversation_service.set_group_photo(db, store, conversation_id, caller_id, photo)
    return PhotoUploaded(url=url)
