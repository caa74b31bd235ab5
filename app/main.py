"""
FastAPI app

- Quiz definitions, stateless scoring and share links
- Assessment sessions (triage, answers, contact capture, lead submission)
- CORS configured for the quiz widget and embedding sites
- Basic health check
"""
import logging
from contextlib import asynccontextmanager
from pathlib import Path

from dotenv import load_dotenv
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

# Load environment variables from .env file early
# Get the project root directory (parent of app/)
project_root = Path(__file__).parent.parent
load_dotenv(dotenv_path=project_root / '.env')

from app.api import router
from app.core.config import CORS_ORIGINS, LOG_LEVEL
from app.api.middleware import TimingMiddleware
from app.database.cache import TTLCache, get_session_store

logging.basicConfig(
    level=LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

logger = logging.getLogger(__name__)


async def drain_sessions(store: TTLCache):
    """
    Let in-flight partial submissions finish, then drop expired sessions

    Expired sessions are drained too; their pending work is still owed.
    """
    for engine in store.values(include_expired=True):
        await engine.wait_for_background()
    removed = store.purge_expired()
    if removed:
        logger.info(f"Dropped {removed} expired sessions")


@asynccontextmanager
async def lifespan(fastapi_app: FastAPI):
    yield  # Application runs here
    await drain_sessions(get_session_store())


app = FastAPI(title="ENT Assessment API", lifespan=lifespan)

# Logs request duration and routed doctor for all requests
app.add_middleware(TimingMiddleware)

app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,  # Uses CORS_ORIGINS from config (env var)
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["*"],
)

app.include_router(router, prefix="/api/v1")



@app.get("/")
async def root():
    """
    Basic health check
    """
    return {"status": "ok"}
