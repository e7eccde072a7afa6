import logging
import os
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from config import APP_ENV, HOST, LOG_LEVEL, PORT, UPLOAD_DIR, UPLOAD_URL_PREFIX
from dependencies import engine, get_db
from errors import MessagingError
from models import Base
from routes.conversations import router as conversations_router
from routes.groups import router as groups_router
from routes.messages import router as messages_router
from routes.session import router as session_router
from routes.users import router as users_router

# --- Logging Setup ---
logging.basicConfig(level=LOG_LEVEL)
logger = logging.getLogger(__name__)


# --- Lifespan Setup ---
@asynccontextmanager
async def lifespan(app: FastAPI):
    if APP_ENV == "development":
        logger.info("[wasatext] Running in development mode: Creating tables...")
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        logger.info("[wasatext] Tables created.")
    os.makedirs(UPLOAD_DIR, exist_ok=True)
    yield
    await engine.dispose()
    logger.info("[wasatext] Lifespan shutdown: cleanup complete")


# --- FastAPI App ---
app = FastAPI(title="WASAText", lifespan=lifespan)


@app.middleware("http")
async def log_requests(request: Request, call_next):
    response = await call_next(request)
    logger.info(f"{request.method} {request.url.path} -> {response.status_code}")
    return response


# --- Error mapping ---
@app.exception_handler(MessagingError)
async def messaging_error_handler(request: Request, exc: MessagingError):
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.detail})


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    return JSONResponse(
        status_code=400,
        content={"detail": "Bad request", "errors": jsonable_encoder(exc.errors())},
    )


@app.exception_handler(SQLAlchemyError)
async def database_error_handler(request: Request, exc: SQLAlchemyError):
    logger.exception(f"Database error on {request.method} {request.url.path}")
    return JSONResponse(status_code=500, content={"detail": "internal error"})


# --- Routers ---
app.include_router(session_router)
app.include_router(users_router)
app.include_router(conversations_router)
app.include_router(groups_router)
app.include_router(messages_router)

app.mount(UPLOAD_URL_PREFIX, StaticFiles(directory=UPLOAD_DIR, check_dir=False), name="uploads")


@app.get("/")
async def health_check():
    return {"status": "wasatext OK"}


@app.get("/liveness")
async def liveness(db: AsyncSession = Depends(get_db)):
    await db.execute(text("SELECT 1"))
    return {"status": "alive"}


# --- Dev Entry Point ---
if __name__ == "__main__":
    import uvicorn
    uvicorn.run("main:app", host=HOST, port=PORT, reload=APP_ENV == "development")
