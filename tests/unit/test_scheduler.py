import threading
import time
from datetime import datetime, timedelta, timezone

from s3_streamlogger.scheduler import FlushScheduler, should_flush_now

NOW = datetime(2024, 6, 1, 12, 0, tzinfo=timezone.utc)
DELAY = timedelta(milliseconds=20000)


def test_should_flush_when_buffer_strictly_exceeds_size():
    assert not should_flush_now(NOW, NOW, DELAY, unwritten=1000, buffer_size=1000)
    assert should_flush_now(NOW, NOW, DELAY, unwritten=1001, buffer_size=1000)


def test_should_flush_when_upload_delay_elapsed():
    last = NOW - timedelta(milliseconds=20001)
    assert should_flush_now(NOW, last, DELAY, unwritten=1, buffer_size=1000)
    assert not should_flush_now(NOW, NOW - DELAY, DELAY, unwritten=1, buffer_size=1000)


def test_timer_fires_once():
    scheduler = FlushScheduler()
    fired = threading.Event()
    scheduler.arm(0.01, lambda generation: fired.set())
    assert scheduler.pending
    assert fired.wait(2)
    time.sleep(0.05)
    assert not scheduler.pending


def test_rearm_replaces_pending_timer():
    scheduler = FlushScheduler()
    calls = []
    done = threading.Event()
    scheduler.arm(0.05, lambda generation: calls.append("first"))
    scheduler.arm(0.05, lambda generation: (calls.append("second"), done.set()))
    assert done.wait(2)
    time.sleep(0.1)
    assert calls == ["second"]


def test_cancel_prevents_callback():
    scheduler = FlushScheduler()
    calls = []
    scheduler.arm(0.02, lambda generation: calls.append(1))
    scheduler.cancel()
    time.sleep(0.1)
    assert calls == []
    assert not scheduler.pending


def test_callback_receives_armed_generation():
    scheduler = FlushScheduler()
    seen = []
    fired = threading.Event()
    armed = scheduler.arm(0.01, lambda generation: (seen.append(generation), fired.set()))
    assert fired.wait(2)
    assert seen == [armed]
    assert scheduler.is_current(armed)


def test_cancel_and_rearm_supersede_generation():
    scheduler = FlushScheduler()
    first = scheduler.arm(10, lambda generation: None)
    second = scheduler.arm(10, lambda generation: None)
    assert second != first
    assert not scheduler.is_current(first)
    assert scheduler.is_current(second)
    scheduler.cancel()
    assert not scheduler.is_current(second)
    assert scheduler.generation > second
