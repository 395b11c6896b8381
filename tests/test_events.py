from ielts_coach.dialogue.events import (
    DialogueEventBus, ErrorOccurredEvent, EventType, ResponseSpokenEvent,
    SessionMetrics, SessionStartedEvent, SessionStoppedEvent
)


def test_failing_handler_does_not_block_others():
    bus = DialogueEventBus()
    received = []

    def broken(event):
        raise RuntimeError("handler bug")

    bus.subscribe(EventType.SESSION_STARTED, broken)
    bus.subscribe(EventType.SESSION_STARTED, received.append)
    bus.subscribe_all(broken)
    bus.subscribe_all(received.append)

    bus.emit(SessionStartedEvent(1, 0.0, "examiner"))

    assert len(received) == 2
    assert received[0].data == {"profile": "examiner"}


def test_unsubscribe_stops_delivery():
    bus = DialogueEventBus()
    received = []
    bus.subscribe(EventType.SESSION_STOPPED, received.append)
    bus.unsubscribe(EventType.SESSION_STOPPED, received.append)
    bus.emit(SessionStoppedEvent(1, 0.0, 3))
    assert received == []


def test_metrics_count_by_event_type():
    metrics = SessionMetrics()
    bus = DialogueEventBus()
    bus.subscribe_all(metrics.handle_event)

    bus.emit(SessionStartedEvent(1, 0.0, "examiner"))
    bus.emit(ResponseSpokenEvent(1, 0.0, completed=True, error=None))
    bus.emit(ResponseSpokenEvent(1, 0.0, completed=False, error="device busy"))
    bus.emit(ErrorOccurredEvent(1, 0.0, "ServiceError", "Bad Gateway", "oracle"))
    bus.emit(SessionStoppedEvent(1, 0.0, 3))

    snapshot = metrics.get_metrics()
    assert snapshot["sessions_started"] == 1
    assert snapshot["sessions_completed"] == 1
    assert snapshot["playback_failures"] == 1
    assert snapshot["errors_occurred"] == 1

    metrics.reset()
    assert set(metrics.get_metrics().values()) == {0}
