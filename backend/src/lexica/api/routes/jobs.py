"""Word generation queue API endpoints.

This module exposes the generation queue to the local UI shell:
- POST /api/jobs/words/{word_id} - Queue (or re-queue) content generation for a word
- GET /api/jobs/words/{word_id}/status - Word processing status and sentence count
- GET /api/jobs/summary - Queue counts and the words waiting or in progress
- WebSocket /api/jobs/events - Stream of wordUpdated events
"""

import asyncio

import structlog
from fastapi import APIRouter, Depends, HTTPException, Query, WebSocket, WebSocketDisconnect, status
from pydantic import BaseModel, Field

from lexica.api.dependencies import get_broadcaster, get_queue_service
from lexica.api.events import WordUpdateBroadcaster
from lexica.models.generation_job import JobStatus
from lexica.models.word import WordProcessingStatus
from lexica.repositories.word import WordStatus
from lexica.services.exceptions import WordNotFoundError
from lexica.services.generation_queue import GenerationQueueService

logger = structlog.get_logger()
router = APIRouter(prefix="/api/jobs", tags=["jobs"])


# Request/Response Models


class EnqueueRequest(BaseModel):
    """Optional overrides for a generation request."""

    language: str | None = Field(
        default=None,
        description="Target language (defaults to the word's language)",
        min_length=1,
        max_length=50,
    )
    topic: str | None = Field(
        default=None,
        description="Topic hint for sentence generation",
        max_length=200,
    )
    desired_sentence_count: int | None = Field(
        default=None,
        description="Number of sentences the word should have (defaults to configuration)",
        ge=1,
        le=20,
    )


class WordStatusResponse(BaseModel):
    """Processing status of a word."""

    word_id: int
    processing_status: WordProcessingStatus
    sentence_count: int


class JobWordResponse(BaseModel):
    """Word entry in the queue summary."""

    word_id: int
    word: str
    status: JobStatus
    language: str
    topic: str | None = None


class QueueSummaryResponse(BaseModel):
    """Queue counts per job status plus queued/processing words."""

    queued: int
    processing: int
    failed: int
    queued_words: list[JobWordResponse]
    processing_words: list[JobWordResponse]


def _status_response(word_id: int, word_status: WordStatus) -> WordStatusResponse:
    return WordStatusResponse(
        word_id=word_id,
        processing_status=word_status.processing_status,
        sentence_count=word_status.sentence_count,
    )


# Endpoints


@router.post(
    "/words/{word_id}",
    response_model=WordStatusResponse,
    status_code=status.HTTP_202_ACCEPTED,
)
async def enqueue_word(
    word_id: int,
    payload: EnqueueRequest | None = None,
    queue_service: GenerationQueueService = Depends(get_queue_service),
) -> WordStatusResponse:
    """Queue content generation for a word.

    Re-queueing a word resets its job (attempts, last error) even if it is
    currently being processed.

    Returns:
        202 with the word's status after enqueueing

    Raises:
        HTTPException: 404 if the word does not exist
    """
    payload = payload or EnqueueRequest()

    try:
        word_status = await queue_service.enqueue(
            word_id,
            language=payload.language,
            topic=payload.topic,
            desired_sentence_count=payload.desired_sentence_count,
        )
    except WordNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e)) from e

    return _status_response(word_id, word_status)


@router.get("/words/{word_id}/status", response_model=WordStatusResponse)
async def get_word_status(
    word_id: int,
    queue_service: GenerationQueueService = Depends(get_queue_service),
) -> WordStatusResponse:
    """Return a word's processing status and sentence count (404 if unknown)."""
    word_status = await queue_service.get_status(word_id)
    if word_status is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND, detail=f"Word {word_id} not found"
        )
    return _status_response(word_id, word_status)


@router.get("/summary", response_model=QueueSummaryResponse)
async def get_queue_summary(
    language: str | None = Query(default=None, description="Filter by job language"),
    queue_service: GenerationQueueService = Depends(get_queue_service),
) -> QueueSummaryResponse:
    """Return queue counts and the words waiting or in progress (oldest first)."""
    summary = await queue_service.get_queue_summary(language)

    return QueueSummaryResponse(
        queued=summary.queued,
        processing=summary.processing,
        failed=summary.failed,
        queued_words=[JobWordResponse(**vars(info)) for info in summary.queued_words],
        processing_words=[JobWordResponse(**vars(info)) for info in summary.processing_words],
    )


@router.websocket("/events")
async def word_events(
    websocket: WebSocket,
    broadcaster: WordUpdateBroadcaster = Depends(get_broadcaster),
) -> None:
    """Stream ``wordUpdated`` events to a connected UI client until it disconnects.

    The client never sends on this socket, so a listener task only watches for
    the disconnect frame. Whichever task finishes first ends the connection and
    the subscriber queue is released right away.
    """
    await websocket.accept()
    queue = broadcaster.subscribe()
    logger.info("events.client_connected", subscribers=broadcaster.subscriber_count)

    async def forward_updates() -> None:
        while True:
            update = await queue.get()
            await websocket.send_json(update.to_event())

    async def wait_for_disconnect() -> None:
        while True:
            message = await websocket.receive()
            if message["type"] == "websocket.disconnect":
                return

    forwarder = asyncio.create_task(forward_updates())
    listener = asyncio.create_task(wait_for_disconnect())
    try:
        done, _ = await asyncio.wait({forwarder, listener}, return_when=asyncio.FIRST_COMPLETED)
        for task in done:
            task.result()
    except WebSocketDisconnect:
        pass
    finally:
        forwarder.cancel()
        listener.cancel()
        await asyncio.gather(forwarder, listener, return_exceptions=True)
        broadcaster.unsubscribe(queue)
        logger.info("events.client_disconnected", subscribers=broadcaster.subscriber_count)
