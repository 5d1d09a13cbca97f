import pytest

from picokern.timer import MESSAGE_CAPACITY, TimeoutMessage, TimerQueue


class FakeClock:
    def __init__(self, now=0):
        self.now = now

    def __call__(self):
        return self.now


def make_queue(now=0):
    clock = FakeClock(now)
    lines = []
    return TimerQueue(clock, lines.append), clock, lines


def test_callbacks_fire_in_expiry_order():
    queue, clock, _ = make_queue()
    fired = []
    queue.add_timer(fired.append, 3, "c")
    queue.add_timer(fired.append, 1, "a")
    queue.add_timer(fired.append, 2, "b")
    clock.now = 10
    assert queue.handle_irq() == 3
    assert fired == ["a", "b", "c"]
    assert len(queue) == 0


def test_equal_expiry_keeps_insertion_order():
    queue, clock, _ = make_queue()
    fired = []
    for name in ("first", "second", "third"):
        queue.add_timer(fired.append, 2, name)
    clock.now = 2
    queue.handle_irq()
    assert fired == ["first", "second", "third"]


def test_only_expired_timers_run():
    queue, clock, _ = make_queue(now=5)
    fired = []
    queue.add_timer(fired.append, 1, "soon")
    queue.add_timer(fired.append, 10, "later")
    clock.now = 6
    assert queue.handle_irq() == 1
    assert fired == ["soon"]
    assert len(queue) == 1
    assert queue.next_expiry == 15
    assert queue.interrupt_enabled


def test_interrupt_disabled_when_drained():
    queue, clock, _ = make_queue()
    queue.add_timer(lambda data: None, 1)
    assert queue.interrupt_enabled
    clock.now = 1
    queue.handle_irq()
    assert not queue.interrupt_enabled
    assert queue.next_expiry is None


def test_empty_queue_reports_time_since_boot():
    queue, clock, lines = make_queue(now=7)
    assert queue.handle_irq() == 0
    assert lines == ["Time since boot: 7 seconds"]


def test_negative_seconds_rejected():
    queue, _, _ = make_queue()
    with pytest.raises(ValueError):
        queue.add_timer(lambda data: None, -1)


def test_set_timeout_prints_message():
    queue, clock, lines = make_queue(now=4)
    msg = queue.set_timeout("hello", 3)
    assert msg.creation_time == 4
    clock.now = 7
    queue.handle_irq()
    assert "Message:\thello" in lines
    assert "Create time:\t4 sec" in lines
    assert "Current time:\t7 sec" in lines
    assert "Elapsed time:\t3 sec" in lines
    assert lines[1] == "===== Message ====="


def test_set_timeout_not_printed_before_expiry():
    queue, clock, lines = make_queue()
    queue.set_timeout("later", 5)
    clock.now = 4
    queue.handle_irq()
    assert lines == []
    assert len(queue) == 1


def test_timeout_message_is_truncated():
    msg = TimeoutMessage("x" * 500, 0)
    assert len(msg.message) == MESSAGE_CAPACITY - 1


def test_callback_can_schedule_another_timer():
    queue, clock, _ = make_queue()
    fired = []

    def chain(data):
        fired.append(data)
        if data == "one":
            queue.add_timer(fired.append, 0, "two")

    queue.add_timer(chain, 1, "one")
    clock.now = 1
    assert queue.handle_irq() == 2
    assert fired == ["one", "two"]