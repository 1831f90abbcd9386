# triage/main.py
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from triage.config import get_settings
from triage.services import init_db
from triage.api.routes import router as api_router

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Configure logging and create the note tables before serving requests.
    """
    settings = get_settings()
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    init_db()
    logger.info(
        "Triage intake ready (policy=%s, max_turns=%s)",
        settings.sufficiency_policy,
        settings.max_turns,
    )
    yield


app = FastAPI(title="Triage Intake API", version="1.0.0", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
    allow_credentials=True,
)


@app.get("/")
def root():
    return {"message": "Triage Intake API is running"}


app.include_router(api_router, prefix="/api")
