"""Service for the manual "feed now" command."""

from typing import Callable

from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession

from src.alerting.domain.protocols import CommandPublisher
from src.alerting.domain.timeutil import now_ms
from src.api.domain.schemas import FeedResponse
from src.api.infrastructure.repositories import LogRepository

FEED_PAYLOAD = "1"


class FeedService:
    """Publishes the feed command to the device and records it in the activity log."""

    def __init__(self, publisher: CommandPublisher, topic_prefix: str, clock: Callable[[], int] = now_ms):
        self.publisher = publisher
        self.topic = f"{topic_prefix}/control/feed"
        self.clock = clock

    async def feed_now(self, session: AsyncSession) -> FeedResponse:
        """
        Trigger one feeding cycle.

        Raises:
            CommandPublishError: If the broker did not take the command;
                nothing is logged in that case
        """
        await self.publisher.publish(self.topic, FEED_PAYLOAD)

        timestamp = self.clock()
        await LogRepository(session).create("Feed activated from dashboard", "web", timestamp)
        await session.commit()

        logger.info("✓ Feed command sent")
        return FeedResponse(topic=self.topic, payload=FEED_PAYLOAD, timestamp_ms=timestamp)
