"""
Discuss API Routes

POST /api/discuss - run /discuss for a host-agnostic JSON payload
"""

from fastapi import APIRouter, Depends, HTTPException
import logging

from threadroom.api.dependencies import get_discuss_command
from threadroom.models.api_responses import DiscussCommandRequest, DiscussOutcome
from threadroom.services.discuss_command import DiscussCommand

logger = logging.getLogger(__name__)
router = APIRouter()


@router.post("", response_model=DiscussOutcome)
async def run_discuss(
    request: DiscussCommandRequest,
    command: DiscussCommand = Depends(get_discuss_command),
):
    """
    Run one /discuss invocation and return its outcome.

    Examples:
    - {"room_id": "C1", "user_id": "U1", "text": "#general Launch planning"}
    - {"room_id": "C1", "user_id": "U1", "thread_id": "1706123400.123456"}
    """
    try:
        return await command.execute(request)
    except Exception as e:
        logger.error(f"Error running discuss command: {e}")
        raise HTTPException(
            status_code=500,
            detail={"success": False, "message": "Discuss command failed"},
        )
