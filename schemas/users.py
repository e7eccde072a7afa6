from typing import Optional

from schemas.common import CamelModel


class LoginRequest(CamelModel):
    name: str


class LoginResponse(CamelModel):
    identifier: str
    token: str


class UserOut(CamelModel):
    id: str
    name: str
    photo_url: Optional[str] = None


class UsernameUpdate(CamelModel):
    name: str


class UsernameOut(CamelModel):
    name: str
