"""
Slack API Routes

POST /api/slack/commands - Slack slash-command endpoint for /discuss

Slack expects an answer within 3 seconds, so the command runs as a background
task and the reply is an empty 200; the user hears back through ephemeral
notifications.
"""

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, Request, Response
from pydantic import ValidationError
from slack_sdk.signature import SignatureVerifier
from urllib.parse import parse_qs
import logging

from threadroom.api.dependencies import get_discuss_command
from threadroom.config import Settings, get_settings
from threadroom.integrations.slack.models import SlackCommandPayload
from threadroom.services.discuss_command import DiscussCommand

logger = logging.getLogger(__name__)
router = APIRouter()


def _verify_signature(settings: Settings, body: bytes, request: Request) -> None:
    if not settings.slack_signing_secret:
        return
    verifier = SignatureVerifier(settings.slack_signing_secret)
    if not verifier.is_valid_request(body, dict(request.headers)):
        logger.warning("Rejected Slack request with invalid signature")
        raise HTTPException(status_code=401, detail="Invalid Slack signature")


@router.post("/commands")
async def slash_command(
    request: Request,
    background_tasks: BackgroundTasks,
    command: DiscussCommand = Depends(get_discuss_command),
    settings: Settings = Depends(get_settings),
):
    """Accept a Slack slash-command invocation and run it in the background."""
    body = await request.body()
    _verify_signature(settings, body, request)

    form = {k: v[0] for k, v in parse_qs(body.decode("utf-8"), keep_blank_values=True).items()}
    try:
        payload = SlackCommandPayload(**form)
    except ValidationError as e:
        logger.warning(f"Malformed Slack command payload: {e}")
        raise HTTPException(status_code=400, detail="Malformed slash command payload")

    if payload.command_name != settings.command_name:
        raise HTTPException(status_code=400, detail=f"Unknown command {payload.command}")

    logger.info(f"Slack command {payload.command} from {payload.user_id} in {payload.channel_id}")
    background_tasks.add_task(command.execute, payload.to_command_request())
    return Response(status_code=200)
