"""PostHog analytics service for event tracking."""

import logging

import posthog

from src.pizza42.config import settings

logger = logging.getLogger(__name__)


class PostHogService:
    """Service for tracking auth and ordering events via PostHog."""

    def __init__(self) -> None:
        """Initialize PostHog service."""
        if settings.posthog_api_key:
            posthog.api_key = settings.posthog_api_key
            posthog.host = settings.posthog_host

    def capture(self, distinct_id: str, event: str, properties: dict | None = None) -> None:
        """
        Track an event.

        Args:
            distinct_id: Unique identifier for the user ("anonymous" before auth)
            event: Event name (e.g., "order_placed", "authentication_failed")
            properties: Optional event properties

        Example:
            >>> service = PostHogService()
            >>> service.capture("auth0|123", "order_placed", {"pizza": "Margherita"})
        """
        if not settings.posthog_api_key:
            return

        try:
            posthog.capture(distinct_id=distinct_id, event=event, properties=properties or {})
        except Exception as e:
            # Analytics must never fail a request
            logger.warning(f"PostHog capture failed for {event}: {e}")
