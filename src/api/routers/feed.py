"""API route for the manual feed command."""

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from src.alerting.domain.exceptions import CommandPublishError
from src.api.application.feed_service import FeedService
from src.api.domain.schemas import FeedResponse
from src.api.infrastructure.container import get_container
from src.api.infrastructure.database import get_db_session

router = APIRouter(prefix="/api/feed", tags=["feed"])


def get_feed_service():
    """Get feed service dependency."""
    container = get_container()
    return FeedService(container.command_publisher(), container.app_config().mqtt.topic_prefix)


@router.post("", response_model=FeedResponse)
async def feed_now(
    session: AsyncSession = Depends(get_db_session),
    service: FeedService = Depends(get_feed_service),
):
    """Publish `<prefix>/control/feed` = `1` and log the action."""
    try:
        return await service.feed_now(session)
    except CommandPublishError as e:
        raise HTTPException(status_code=502, detail=e.message)
