import logging
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from app.core.config import settings
from app.database.connection import close_mongo_connection, connect_to_mongo, get_database
from app.routers.chat import router as chat_router
from app.routers.conversations import router as conversations_router
from app.utils.errors import MessagingError
from app.utils.realtime_bus import close_bus


logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)


@asynccontextmanager
async def lifespan(app: FastAPI):

    await connect_to_mongo()
    try:
        yield
    finally:
        await close_bus()
        await close_mongo_connection()


app = FastAPI(title="Direct Messaging API", lifespan=lifespan)


@app.exception_handler(MessagingError)
async def messaging_error_handler(request: Request, exc: MessagingError):
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.reason, "code": exc.code})


app.include_router(chat_router)
app.include_router(conversations_router)


@app.get("/")
async def root():

    db = get_database()
    await db.command("ping")
    return {"message": "Connected to MongoDB!"}


def run() -> None:
    uvicorn.run("app.main:app", host=settings.API_HOST, port=settings.API_PORT)


if __name__ == "__main__":
    run()
