"""Configured feed pollers, keyed by the name used in /feeds routes."""

from app.config import settings
from app.infrastructure.observability.logging import get_logger
from app.services.feeds.airdrop import parse_airdrop_feed
from app.services.feeds.polling import PollingFeedClient
from app.services.feeds.stability import parse_stability_feed

logger = get_logger(__name__)

STABILITY_FEED = "stability"
AIRDROP_FEED = "airdrops"


class FeedRegistry:
    def __init__(self, feeds: dict[str, PollingFeedClient] | None = None):
        self.feeds: dict[str, PollingFeedClient] = feeds or {}

    def get(self, name: str) -> PollingFeedClient | None:
        return self.feeds.get(name)

    async def start_all(self) -> None:
        for feed in self.feeds.values():
            await feed.start()

    async def stop_all(self) -> None:
        for feed in self.feeds.values():
            try:
                await feed.stop()
            except Exception as e:
                logger.error("Error stopping feed poller", feed=feed.name, error=str(e))


def build_feed_registry() -> FeedRegistry:
    feeds = {}
    if settings.STABILITY_FEED_URL:
        feeds[STABILITY_FEED] = PollingFeedClient(
            STABILITY_FEED,
            settings.STABILITY_FEED_URL,
            parse=parse_stability_feed,
            interval_seconds=settings.STABILITY_POLL_INTERVAL_SECONDS,
        )
    if settings.AIRDROP_FEED_URL:
        feeds[AIRDROP_FEED] = PollingFeedClient(
            AIRDROP_FEED,
            settings.AIRDROP_FEED_URL,
            parse=parse_airdrop_feed,
            interval_seconds=settings.AIRDROP_POLL_INTERVAL_SECONDS,
        )

    if not feeds:
        logger.info("No feed URLs configured, feed polling disabled")
    return FeedRegistry(feeds)


feed_registry = build_feed_registry()
