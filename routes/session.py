from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from dependencies import get_db, get_identity_provider
from schemas.users import LoginRequest, LoginResponse
from security import IdentityProvider
from services import users as user_service

router = APIRouter()


@router.post("/session", response_model=LoginResponse, status_code=201)
async def login(
    data: LoginRequest,
    db: AsyncSession = Depends(get_db),
    provider: IdentityProvider = Depends(get_identity_provider),
):
    user_id = await user_service.login(db, data.name)
    return LoginResponse(identifier=user_id, token=provider.issue(user_id))
