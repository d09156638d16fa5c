import logging
import os
from contextlib import asynccontextmanager

from dotenv import load_dotenv
from fastapi import FastAPI

from donation_server.api import payment_router
from donation_server.db.base_class import Base
from donation_server.db.session import engine

# Register all tables on Base.metadata
from donation_server.models import category, donation, user  # noqa: F401

load_dotenv()
logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)


@asynccontextmanager
async def lifespan(app: FastAPI):
    if os.getenv("CREATE_TABLES", "").strip().lower() in ("1", "true", "yes"):
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        logging.info("Database tables ensured")
    yield
    await engine.dispose()


app = FastAPI(lifespan=lifespan)

app.include_router(payment_router.router, prefix="/api")


@app.get("/api/health")
async def health():
    return {"status": "ok"}
