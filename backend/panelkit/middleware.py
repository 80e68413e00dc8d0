"""
panelkit/middleware.py

ASGI middleware installed on panel sub-applications.

Panel.middleware() accepts Starlette ``Middleware`` entries or bare classes.
Classes flagged ``panel_aware`` are constructed with the panel's id.
"""
import logging
from typing import Optional

from starlette.concurrency import run_in_threadpool
from starlette.types import ASGIApp, Receive, Scope, Send

from panelkit.events import PANEL_SERVING, Event, EventBus, event_bus

logger = logging.getLogger(__name__)


class DispatchServingPanelEvent:
    """
    Publish ``panel.serving`` for every HTTP request entering the panel

    Subscribers run in the threadpool, off the event loop. The request
    continues once they return.
    """

    panel_aware = True

    def __init__(self, app: ASGIApp, panel_id: str = "", bus: Optional[EventBus] = None):
        self.app = app
        self.panel_id = panel_id
        self.bus = bus if bus is not None else event_bus

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] == "http":
            await run_in_threadpool(self.bus.publish, Event(
                event_type=PANEL_SERVING,
                data={
                    "panel_id": self.panel_id,
                    "path": scope.get("path", ""),
                    "method": scope.get("method", ""),
                },
                source="DispatchServingPanelEvent",
            ))

        await self.app(scope, receive, send)


__all__ = [
    "DispatchServingPanelEvent",
]
