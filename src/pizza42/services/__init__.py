"""Shared services module for external integrations."""

from src.pizza42.services.analytics.posthog import PostHogService

__all__ = [
    "PostHogService",
]
