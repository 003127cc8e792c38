"""Shared FastAPI dependencies."""

from fastapi import Request

from prledger.services.lift_log_events import EventBus


def get_event_bus(request: Request) -> EventBus:
    """Bus wired in create_application (listener + notifier subscribed)."""
    return request.app.state.event_bus
