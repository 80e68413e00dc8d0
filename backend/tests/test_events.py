"""
Event bus tests
"""
import threading

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from starlette.middleware import Middleware

from panelkit.events import PANEL_SERVING, Event, EventBus
from panelkit.middleware import DispatchServingPanelEvent


class TestEventBus:

    @pytest.fixture
    def sample_event(self):
        return Event(event_type=PANEL_SERVING, data={"panel_id": "admin"}, source="test")

    def test_subscribe_and_publish(self, bus, sample_event):
        received = []
        bus.subscribe(PANEL_SERVING, received.append)

        result = bus.publish(sample_event)

        assert received == [sample_event]
        assert result.subscriber_count == 1
        assert result.success_count == 1

    def test_subscribe_is_idempotent(self, bus, sample_event):
        received = []
        bus.subscribe(PANEL_SERVING, received.append)
        bus.subscribe(PANEL_SERVING, received.append)

        bus.publish(sample_event)

        assert len(received) == 1

    def test_unsubscribe(self, bus, sample_event):
        received = []

        def handler(event):
            received.append(event)

        bus.subscribe(PANEL_SERVING, handler)
        bus.unsubscribe(PANEL_SERVING, handler)
        bus.publish(sample_event)

        assert received == []
        assert bus.get_subscribers(PANEL_SERVING) == []

    def test_handler_exception_isolation(self, bus, sample_event):
        received = []

        def failing_handler(event):
            raise RuntimeError("boom")

        bus.subscribe(PANEL_SERVING, failing_handler)
        bus.subscribe(PANEL_SERVING, received.append)

        result = bus.publish(sample_event)

        assert received == [sample_event]
        assert result.failure_count == 1
        assert isinstance(result.errors[0][1], RuntimeError)

    def test_history_newest_first(self, bus):
        bus.publish(Event(event_type="a"))
        bus.publish(Event(event_type="b"))
        bus.publish(Event(event_type="a", data={"n": 2}))

        assert [event.event_type for event in bus.get_history()] == ["a", "b", "a"]
        assert bus.get_history("a")[0].data == {"n": 2}
        assert len(bus.get_history(limit=1)) == 1

    def test_history_size(self):
        bus = EventBus(history_size=2)
        for index in range(3):
            bus.publish(Event(event_type="tick", data={"n": index}))

        assert [event.data["n"] for event in bus.get_history()] == [2, 1]

    def test_clear(self, bus, sample_event):
        bus.subscribe(PANEL_SERVING, lambda event: None)
        bus.publish(sample_event)
        bus.clear()

        assert bus.get_history() == []
        assert bus.get_subscribers(PANEL_SERVING) == []


class TestDispatchServingPanelEvent:

    def test_subscribers_run_off_the_event_loop(self, bus):
        threads = {}

        app = FastAPI(middleware=[Middleware(DispatchServingPanelEvent, panel_id="admin", bus=bus)])

        @app.get("/ping")
        async def ping():
            threads["loop"] = threading.get_ident()
            return {"ok": True}

        bus.subscribe(PANEL_SERVING, lambda event: threads.setdefault("handler", threading.get_ident()))

        assert TestClient(app).get("/ping").json() == {"ok": True}
        assert threads["handler"] != threads["loop"]

        [event] = bus.get_history(PANEL_SERVING)
        assert event.data == {"panel_id": "admin", "path": "/ping", "method": "GET"}
