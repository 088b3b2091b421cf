"""
Web Routes - Platform callback and status endpoints
==================================================
"""

from typing import Optional

from fastapi import APIRouter, BackgroundTasks, Request, Response
from pydantic import BaseModel

from core.logging import get_logger
from modules.base import InboundEvent

logger = get_logger("web.routes")

router = APIRouter()


class CallbackBody(BaseModel):
    """Callback payload. Fields beyond these are ignored."""
    group_id: str
    sender_type: str
    text: Optional[str] = ""


def _process_event(request: Request, event: InboundEvent) -> None:
    try:
        request.app.state.router.process_callback(event)
    except Exception as e:
        logger.error(f"Failed to process callback: {e}", exc_info=True)


@router.post("/")
async def callback(request: Request, body: CallbackBody, background_tasks: BackgroundTasks):
    """
    Receive a message callback.

    Responds 200 straight away; the event is routed after the response
    is sent.
    """
    event = InboundEvent.from_dict(body.model_dump())
    logger.info(f"Callback received: {event}")
    background_tasks.add_task(_process_event, request, event)
    return Response(status_code=200)


@router.get("/status")
async def get_status(request: Request):
    """Report registered modules, rule count and groups."""
    config = request.app.state.config
    store = request.app.state.store
    bot_router = request.app.state.router

    return {
        "status": "ok",
        "modules": [module.name for module in bot_router.modules],
        "rules": len(store),
        "conversation_groups": list(config.conversation_groups),
        "management_groups": list(config.management_groups),
    }
