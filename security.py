"""
Identity providers.

An 'IdentityProvider' turns the bearer credential of a request into a user id
and issues the credential handed out at login. Services only ever see the
resolved user id.

'OpaqueTokenProvider' treats the token as the user id itself: any non-empty
string is accepted and nothing is verified. It is a convenience for trusted
clients, not a security mechanism. 'JWTProvider' signs the user id into a
short-lived HS256 token.
"""

import datetime
from abc import ABC, abstractmethod
from typing import Optional

import jwt
from fastapi import Request


class AuthenticationError(Exception):
    pass


def extract_token(request: Request) -> Optional[str]:
    """
    Extract the bearer token from the Authorization header.
    A raw header value without the "Bearer " prefix is accepted too.
    """
    raw = (request.headers.get("Authorization") or "").strip()
    scheme, _, token = raw.partition(" ")
    if scheme == "Bearer":
        raw = token.strip()
    return raw or None


class IdentityProvider(ABC):
    @abstractmethod
    def issue(self, user_id: str) -> str:
        """Credential the client must present for 'user_id'."""

    @abstractmethod
    def resolve(self, token: str) -> str:
        """Return the user id behind 'token' or raise AuthenticationError."""


class OpaqueTokenProvider(IdentityProvider):
    def issue(self, user_id: str) -> str:
        return user_id

    def resolve(self, token: str) -> str:
        if not token or not token.strip():
            raise AuthenticationError("Authorization token missing or invalid")
        return token.strip()


class JWTProvider(IdentityProvider):
    def __init__(self, secret_key: str, algorithm: str = "HS256", expire_minutes: int = 60):
        self.secret_key = secret_key
        self.algorithm = algorithm
        self.expire_minutes = expire_minutes

    def issue(self, user_id: str) -> str:
        """Generates a JWT token"""
        payload = {
            "sub": str(user_id),
            "exp": datetime.datetime.now(datetime.timezone.utc)
            + datetime.timedelta(minutes=self.expire_minutes),
        }
        return jwt.encode(payload, self.secret_key, algorithm=self.algorithm)

    def resolve(self, token: str) -> str:
        try:
            payload = jwt.decode(token, self.secret_key, algorithms=[self.algorithm])
        except jwt.ExpiredSignatureError:
            raise AuthenticationError("Token has expired")
        except jwt.InvalidTokenError:
            raise AuthenticationError("Invalid token")

        user_id = payload.get("sub")
        if not user_id:
            raise AuthenticationError("Invalid token")
        return user_id


def build_identity_provider(mode: str, secret_key: str, algorithm: str, expire_minutes: int) -> IdentityProvider:
    if mode == "jwt":
        return JWTProvider(secret_key, algorithm, expire_minutes)
    if mode == "opaque":
        return OpaqueTokenProvider()
    raise ValueError(f"Unknown AUTH_MODE {mode!r} (use 'opaque' or 'jwt')")
