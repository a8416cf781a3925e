from datetime import datetime
from tt.common.logger import log
from tt.util import format_time, format_date

# One tracked activity. Time only accumulates through tick(), which the host calls once per second while the
# timer is running, so elapsed is always a whole number of seconds.
class Timer:

    # Creating a timer starts it straight away. start_time/elapsed/running are only passed in when rebuilding a
    # timer from a stored record.
    def __init__(self, timer_id, name, description, start_time=None, elapsed=0, running=True):
        self.id = int(timer_id)
        self.name = name
        self.description = description
        self.start_time = start_time or datetime.now().astimezone()
        self.elapsed = max(0, int(elapsed))
        self.running = bool(running)

        log.debug(f"Initialized timer {self.id} '{name}' with elapsed {self.elapsed}, running={self.running}")

    def __repr__(self):
        return f"Timer(id={self.id}, name={self.name!r}, elapsed={self.elapsed}, running={self.running})"

    # Start and stop methods for the timer, both idempotent.
    def start(self):
        if not self.running:
            self.running = True
            log.debug(f"Started timer {self.id} '{self.name}'")
    def stop(self):
        if self.running:
            self.running = False
            log.debug(f"Stopped timer {self.id} '{self.name}' at {self.formatted_duration()}")

    # Advances the timer by exactly one second, only while running.
    def tick(self):
        if self.running:
            self.elapsed += 1

    def formatted_duration(self):
        return format_time(self.elapsed)

    def formatted_date(self):
        return format_date(self.start_time)

    #region === Records ===

    # The flat dict handed to the store. start_time travels as an ISO8601 string.
    def to_record(self):
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "start_time": self.start_time.isoformat(),
            "elapsed": self.elapsed,
            "running": self.running,
        }

    @classmethod
    def from_record(cls, record):
        return cls(
            record["id"],
            record["name"],
            record["description"],
            start_time=datetime.fromisoformat(record["start_time"]),
            elapsed=record.get("elapsed", 0),
            running=record.get("running", False),
        )

    #endregion === Records ===
