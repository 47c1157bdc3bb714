"""Log batch ingestion endpoint."""

# ruff: noqa: B008

from __future__ import annotations

import json

from fastapi import APIRouter, Depends, HTTPException, Request, status

from live_tail.api.context import AppContext, get_app_context
from live_tail.api.schemas import APIMessage

router = APIRouter(tags=["logs"])


@router.post("/", response_model=APIMessage)
async def receive_batch(
    request: Request, context: AppContext = Depends(get_app_context)
) -> APIMessage:
    body = await request.body()
    try:
        payload = json.loads(body)
    except ValueError as exc:
        raise HTTPException(status.HTTP_400_BAD_REQUEST, detail="Body must be JSON") from exc
    batch = context.log_manager.append(payload)
    request.state.batch_events = batch.event_count
    request.state.script_name = payload.get("scriptName") if isinstance(payload, dict) else None
    return APIMessage(message="accepted")


__all__ = ["router"]
