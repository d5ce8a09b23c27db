import logging
import threading
import time
from contextlib import asynccontextmanager
from datetime import datetime

from fastapi import FastAPI, HTTPException, Query
from pydantic import BaseModel, StrictInt

from memora.application.config import resolve_config
from memora.application.factory import get_card_service, get_stats_service
from memora.application.queue_builder import SessionOptions, select_by_tags
from memora.consts import VERSION
from memora.domain.errors import (
    CardNotFoundError,
    ConfigError,
    InvalidRatingError,
    MemoraError,
    StoreCorruptedError,
)
from memora.domain.models import Card

# Setup logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger("memora.server")

# One load -> apply -> save sequence at a time per process
store_lock = threading.Lock()


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup
    logger.info(f"Memora Server v{VERSION} starting up...")
    yield
    # Shutdown
    logger.info("Memora Server shutting down...")


app = FastAPI(
    title="Memora Server",
    description="Local HTTP API for the Memora review scheduler.",
    version=VERSION,
    lifespan=lifespan,
)


class HealthResponse(BaseModel):
    status: str
    version: str
    uptime_seconds: float


class CardResponse(BaseModel):
    id: str
    question: str
    answer: str
    ease_factor: float
    interval: int
    repetition: int
    due_date: datetime
    last_review: datetime | None = None
    last_rating: int | None = None
    performance_history: list[int]
    tags: list[str]
    notes: str

    @classmethod
    def from_card(cls, card: Card) -> "CardResponse":
        return cls(
            id=card.id,
            question=card.question,
            answer=card.answer,
            ease_factor=card.ease_factor,
            interval=card.interval,
            repetition=card.repetition,
            due_date=card.due_date,
            last_review=card.last_review.reviewed_at if card.last_review else None,
            last_rating=card.last_rating,
            performance_history=list(card.performance_history),
            tags=sorted(card.tags),
            notes=card.notes,
        )


class ReviewRequest(BaseModel):
    # Strict so JSON true or 4.0 is rejected; the range is checked by the scheduler
    rating: StrictInt


class ReviewResponse(BaseModel):
    card: CardResponse
    needs_immediate_re_review: bool


class TagsRequest(BaseModel):
    tags: list[str]


class NotesRequest(BaseModel):
    notes: str


class ImportRequest(BaseModel):
    raw: str
    tags: list[str] = []


start_time = time.time()


def _service():
    return get_card_service(resolve_config())


def _raise_http(e: MemoraError):
    if isinstance(e, CardNotFoundError):
        raise HTTPException(status_code=404, detail=str(e)) from e
    if isinstance(e, InvalidRatingError):
        raise HTTPException(status_code=422, detail=str(e)) from e
    if isinstance(e, (StoreCorruptedError, ConfigError)):
        logger.error(f"Cannot serve cards: {e}")
        raise HTTPException(status_code=500, detail=str(e)) from e
    raise HTTPException(status_code=400, detail=str(e)) from e


@app.get("/health", response_model=HealthResponse)
async def health_check():
    """
    Simple health check to verify server is reachable.
    """
    return HealthResponse(status="ok", version=VERSION, uptime_seconds=time.time() - start_time)


@app.get("/version")
async def get_version():
    return {"version": VERSION}


@app.get("/cards", response_model=list[CardResponse])
def list_cards(tag: list[str] | None = Query(default=None)):
    try:
        with store_lock:
            cards = _service().list_cards()
    except MemoraError as e:
        _raise_http(e)
    return [CardResponse.from_card(c) for c in select_by_tags(cards, tag)]


@app.get("/cards/due", response_model=list[CardResponse])
def due_cards(
    tag: list[str] | None = Query(default=None),
    priority: bool = True,
):
    """Due cards in review order, failed and marginal cards first unless priority=false."""
    options = SessionOptions.from_tags(tag, include_failed_priority=priority)
    try:
        with store_lock:
            queue = _service().review_queue(options)
    except MemoraError as e:
        _raise_http(e)
    return [CardResponse.from_card(c) for c in queue]


@app.post("/cards/{card_id}/review", response_model=ReviewResponse)
def review_card(card_id: str, req: ReviewRequest):
    try:
        with store_lock:
            outcome = _service().review_card(card_id, req.rating)
    except MemoraError as e:
        _raise_http(e)

    logger.info(f"Reviewed {card_id} with rating {req.rating}")
    return ReviewResponse(
        card=CardResponse.from_card(outcome.card),
        needs_immediate_re_review=outcome.needs_immediate_re_review,
    )


@app.put("/cards/{card_id}/tags", response_model=CardResponse)
def update_tags(card_id: str, req: TagsRequest):
    try:
        with store_lock:
            card = _service().update_tags(card_id, req.tags)
    except MemoraError as e:
        _raise_http(e)
    return CardResponse.from_card(card)


@app.put("/cards/{card_id}/notes", response_model=CardResponse)
def update_notes(card_id: str, req: NotesRequest):
    try:
        with store_lock:
            card = _service().update_notes(card_id, req.notes)
    except MemoraError as e:
        _raise_http(e)
    return CardResponse.from_card(card)


@app.post("/cards/import", response_model=list[CardResponse])
def import_cards(req: ImportRequest):
    try:
        with store_lock:
            saved = _service().import_raw(req.raw, tags=req.tags)
    except MemoraError as e:
        _raise_http(e)
    return [CardResponse.from_card(c) for c in saved]


@app.get("/stats")
def get_stats():
    try:
        with store_lock:
            stats = get_stats_service(resolve_config()).get_stats()
    except MemoraError as e:
        _raise_http(e)
    return stats.to_dict()
