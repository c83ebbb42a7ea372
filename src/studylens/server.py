import logging
import time
from contextlib import asynccontextmanager
from datetime import datetime

from fastapi import FastAPI, HTTPException
from pydantic import BaseModel, Field

from studylens.application.config import AppConfig, resolve_config
from studylens.application.factory import (
    build_analytics_service,
    build_progress_service,
    build_scoring_engine,
    get_event_store as build_event_store,
)
from studylens.application.serialization import to_jsonable
from studylens.application.utils.timeutil import utcnow
from studylens.consts import VERSION
from studylens.domain.models import AnswerEvent, StudyMode, UserLevel
from studylens.domain.ports import EventStore

# Setup logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger("studylens.server")

_stores: dict[tuple[str, str], EventStore] = {}


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup
    logger.info(f"studylens server v{VERSION} starting up...")
    yield
    # Shutdown
    _stores.clear()
    logger.info("studylens server shutting down...")


app = FastAPI(
    title="studylens server",
    description="Learning analytics and session scoring for flashcard study.",
    version=VERSION,
    lifespan=lifespan,
)


def get_event_store(config: AppConfig) -> EventStore:
    """
    One store per backend/location for the life of the process, so the
    in-memory backend keeps its history between requests.
    """
    key = (config.backend, str(config.data_dir))
    if key not in _stores:
        _stores[key] = build_event_store(config)
    return _stores[key]


class HealthResponse(BaseModel):
    status: str
    version: str
    uptime_seconds: float


start_time = time.time()


@app.get("/health", response_model=HealthResponse)
async def health_check():
    """
    Simple health check to verify server is reachable.
    """
    return HealthResponse(status="ok", version=VERSION, uptime_seconds=time.time() - start_time)


@app.get("/version")
async def get_version():
    return {"version": VERSION}


@app.get("/users/{user_id}/dashboard")
def get_dashboard(user_id: str, now: datetime | None = None):
    """
    Generate the analytics dashboard for a user.

    `now` pins the reference time so the same history always yields the
    same report.
    """
    try:
        config = resolve_config()
        service = build_analytics_service(config, store=get_event_store(config))
        report = service.generate_dashboard(user_id, now=now)
        return to_jsonable(report)
    except Exception as e:
        logger.error(f"Dashboard failed for {user_id}: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail=str(e)) from e


class AnswerModel(BaseModel):
    card_id: str
    is_correct: bool
    response_seconds: float = Field(default=0.0, ge=0)


class SessionRequest(BaseModel):
    set_id: str
    mode: StudyMode = StudyMode.FLASHCARD
    started_at: datetime | None = None
    ended_at: datetime | None = None
    answers: list[AnswerModel] = []


class SessionResponse(BaseModel):
    session_id: str
    points_earned: int
    accuracy: float
    streak: int
    time_bonus: int
    streak_bonus: int
    level_before: UserLevel
    level_after: UserLevel
    leveled_up: bool


@app.post("/users/{user_id}/sessions", response_model=SessionResponse)
def record_session(user_id: str, req: SessionRequest):
    """Score a finished session and save it to the user's history."""
    logger.info(f"Session recorded via API for {user_id}: {len(req.answers)} answers")

    try:
        config = resolve_config()
        now = req.ended_at or utcnow()
        session = build_scoring_engine(config).create_session(
            req.set_id, req.mode, user_id=user_id, now=req.started_at or now
        )
        answers = [
            AnswerEvent(
                card_id=a.card_id, is_correct=a.is_correct, response_seconds=a.response_seconds
            )
            for a in req.answers
        ]
        service = build_progress_service(config, store=get_event_store(config))
        result = service.record_session(user_id, session, answers, now=now)

        return SessionResponse(
            session_id=result.session.id,
            points_earned=result.points_earned,
            accuracy=result.accuracy,
            streak=result.streak,
            time_bonus=result.time_bonus,
            streak_bonus=result.streak_bonus,
            level_before=result.level_before,
            level_after=result.level_after,
            leveled_up=result.leveled_up,
        )
    except Exception as e:
        logger.error(f"Recording session failed for {user_id}: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail=str(e)) from e


@app.get("/levels/{total_score}")
def get_level(total_score: int):
    """Level and progress towards the next level for a total score."""
    try:
        progress = build_scoring_engine(resolve_config()).level_progress(total_score)
        return to_jsonable(progress)
    except Exception as e:
        logger.error(f"Level lookup failed: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail=str(e)) from e
