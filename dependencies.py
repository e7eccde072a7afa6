from fastapi import Depends, HTTPException, Request
from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from config import (
    ACCESS_SECRET_KEY,
    ACCESS_TOKEN_EXPIRE_MINUTES,
    ALGORITHM,
    AUTH_MODE,
    DATABASE_URL,
    UPLOAD_DIR,
    UPLOAD_URL_PREFIX,
)
from security import AuthenticationError, IdentityProvider, build_identity_provider, extract_token
from storage import BlobStore, LocalBlobStore


def enable_sqlite_foreign_keys(engine: AsyncEngine):
    """SQLite ignores foreign keys (and ON DELETE CASCADE) unless asked per connection."""
    if engine.dialect.name != "sqlite":
        return

    @event.listens_for(engine.sync_engine, "connect")
    def _set_sqlite_pragma(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


# --- Async DB Engine Setup ---
engine = create_async_engine(DATABASE_URL, echo=False, pool_pre_ping=True)
enable_sqlite_foreign_keys(engine)

AsyncSessionLocal = async_sessionmaker(
    bind=engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autoflush=False,
)


async def get_db():
    """
    Async dependency for FastAPI routes to get an Async SQLAlchemy session.
    """
    async with AsyncSessionLocal() as session:
        yield session


# --- Identity ---
identity_provider = build_identity_provider(
    AUTH_MODE, ACCESS_SECRET_KEY, ALGORITHM, ACCESS_TOKEN_EXPIRE_MINUTES
)


def get_identity_provider() -> IdentityProvider:
    return identity_provider


def get_current_user_id(
    request: Request, provider: IdentityProvider = Depends(get_identity_provider)
) -> str:
    """
    Resolve the caller from the bearer credential.
    Existence of the user is checked later, by each operation that needs it.
    """
    token = extract_token(request)
    if not token:
        raise HTTPException(status_code=401, detail="Not authorized")
    try:
        return provider.resolve(token)
    except AuthenticationError as e:
        raise HTTPException(status_code=401, detail=str(e))


# --- Photo storage ---
blob_store = LocalBlobStore(UPLOAD_DIR, UPLOAD_URL_PREFIX)


def get_blob_store() -> BlobStore:
    return blob_store
