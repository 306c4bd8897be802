from __future__ import annotations

import logging
from typing import AsyncIterator, Mapping

from fastapi import APIRouter, Depends, Request
from fastapi.responses import StreamingResponse
from pydantic import ValidationError

from .agent import FetchAgent, get_agent
from .auth import authenticate
from .config import Settings, get_settings
from .errors import InvalidRequest, normalize_error
from .schemas import CopilotRequest, HealthResponse

router = APIRouter()

logger = logging.getLogger(__name__)


def _parse_request(body: bytes) -> CopilotRequest:
    try:
        return CopilotRequest.model_validate_json(body)
    except ValidationError as exc:
        raise InvalidRequest("Invalid request body", identifier="request", cause=exc) from exc


async def turn_events(
    body: bytes,
    headers: Mapping[str, str],
    settings: Settings,
    agent: FetchAgent,
) -> AsyncIterator[str]:
    """Stream one turn; any failure ends it with a single copilot_errors frame."""
    try:
        token = await authenticate(headers, body, settings)
        payload = _parse_request(body)
        async for frame in agent.run_turn(payload.messages, token):
            yield frame
    except Exception as exc:
        error = normalize_error(exc)
        logger.exception(
            "Turn failed (%s, type=%s, code=%s): %s",
            error.kind,
            error.type.value,
            error.code.value,
            error.message,
        )
        yield error.to_event()


@router.get("/healthz", response_model=HealthResponse)
def healthcheck() -> HealthResponse:
    return HealthResponse()


@router.post("/")
@router.post("/agent")
async def agent_turn(
    request: Request,
    settings: Settings = Depends(get_settings),
    agent: FetchAgent = Depends(get_agent),
):
    body = await request.body()
    return StreamingResponse(
        turn_events(body, request.headers, settings, agent),
        media_type="text/event-stream",
    )
