"""Main API router for v1."""
from fastapi import APIRouter

from app.api.v1.endpoints import events, participants, polls, questions, sse
from app.schemas import ErrorResponse

api_router = APIRouter(
    prefix="/api/v1",
    responses={
        400: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
        500: {"model": ErrorResponse},
    },
)

# Include all endpoint routers
api_router.include_router(events.router, prefix="/events", tags=["Events"])
api_router.include_router(questions.router, tags=["Questions"])
api_router.include_router(polls.router, tags=["Polls"])
api_router.include_router(participants.router, tags=["Participants"])
api_router.include_router(sse.router, tags=["SSE"])
