"""Timer multiplexing: a queue of one-shot timers ordered by expiry time."""

from __future__ import annotations

from bisect import insort
from dataclasses import dataclass
from typing import Any, Callable, Optional

from picokern.uart import format_dec

MESSAGE_CAPACITY = 128

Clock = Callable[[], int]
OutputFunc = Callable[[str], None]
TimerCallback = Callable[[Any], None]


@dataclass
class Timer:
    """A pending callback and the system time at which it fires."""

    expired_time: int
    callback: TimerCallback
    data: Any = None


@dataclass
class TimeoutMessage:
    """Message shown by a timeout; stored text is limited like a 128-byte C string."""

    message: str
    creation_time: int

    def __post_init__(self) -> None:
        self.message = self.message[: MESSAGE_CAPACITY - 1]


class TimerQueue:
    """Timers kept sorted by expiry; equal expiries fire in insertion order."""

    def __init__(self, clock: Clock, output: Optional[OutputFunc] = None) -> None:
        self._clock = clock
        self._output: OutputFunc = output if output is not None else print
        self._timers: list[Timer] = []
        self.interrupt_enabled = False

    def __len__(self) -> int:
        return len(self._timers)

    @property
    def next_expiry(self) -> Optional[int]:
        """Expiry time of the earliest pending timer, or None when idle."""
        return self._timers[0].expired_time if self._timers else None

    def add_timer(self, callback: TimerCallback, seconds: int, data: Any = None) -> Timer:
        """Schedule ``callback(data)`` to run ``seconds`` from now."""
        if seconds < 0:
            raise ValueError(f"seconds must not be negative, got {seconds}")
        timer = Timer(self._clock() + seconds, callback, data)
        insort(self._timers, timer, key=lambda t: t.expired_time)
        self.interrupt_enabled = True
        return timer

    def handle_irq(self) -> int:
        """Service a timer interrupt and return how many callbacks ran.

        With no timers queued this reports the time since boot instead.
        """
        if not self._timers:
            self._output(f"Time since boot: {format_dec(self._clock())} seconds")
            return 0

        now = self._clock()
        fired = 0
        while self._timers and self._timers[0].expired_time <= now:
            timer = self._timers.pop(0)
            timer.callback(timer.data)
            fired += 1

        if not self._timers:
            self.interrupt_enabled = False
        return fired

    def _print_timeout(self, msg: TimeoutMessage) -> None:
        now = self._clock()
        elapsed = now - msg.creation_time
        for line in (
            "",
            "===== Message =====",
            f"Message:\t{msg.message}",
            f"Create time:\t{format_dec(msg.creation_time)} sec",
            f"Current time:\t{format_dec(now)} sec",
            f"Elapsed time:\t{format_dec(elapsed)} sec",
            "====================",
        ):
            self._output(line)

    def set_timeout(self, message: str, seconds: int) -> TimeoutMessage:
        """Print ``message`` after ``seconds``; return the stored message."""
        msg = TimeoutMessage(message, self._clock())
        self.add_timer(self._print_timeout, seconds, msg)
        return msg