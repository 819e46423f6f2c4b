import time
from rt.common.logger import log

# The master race clock. Elapsed time is kept as integer milliseconds, and running time is measured against a
# monotonic source so wall-clock changes mid-race can't move it. The time source is injectable for tests.
class MasterClock:

    # Simple __init__, with option to specify how much time is already on the clock (e.g. reloaded from disk). A
    # loaded clock always starts paused.
    def __init__(self, elapsed_ms=0, time_source=time.monotonic):
        self._base = max(0, int(elapsed_ms))
        self._time_source = time_source
        self._mono = None
        self._last_reading = self._base

        log.debug(f"Initialized master clock with elapsed of {self._base}ms")

    @property
    def running(self):
        return self._mono is not None

    # Returns the current elapsed milliseconds. Never reads lower than the previous reading while running, even if the
    # time source jitters.
    def elapsed(self):
        if self._mono is None:
            return self._base
        reading = self._base + int((self._time_source() - self._mono) * 1000)
        if reading < self._last_reading:
            reading = self._last_reading
        self._last_reading = reading
        return reading

    # Start and pause methods for the clock. Both are no-ops when already in the requested state.
    def start(self):
        if self._mono is None:
            self._mono = self._time_source()
            self._last_reading = self._base
            log.debug(f"Started master clock at {self._base}ms")
    def pause(self):
        if self._mono is not None:
            self._base = self.elapsed()
            self._mono = None
            self._last_reading = self._base
            log.debug(f"Paused master clock at {self._base}ms")

    # Puts the clock back to 0. A running clock keeps running from 0.
    def reset(self):
        self._base = 0
        self._last_reading = 0
        if self._mono is not None:
            self._mono = self._time_source()
        log.debug(f"Reset master clock to 0 (running={self.running})")

    # "Freezes" the running time into the stored base without stopping, so the persisted value is current.
    def freeze(self):
        if self._mono is not None:
            now = self._time_source()
            reading = max(self._last_reading, self._base + int((now - self._mono) * 1000))
            self._base = reading
            self._mono = now
            self._last_reading = reading
        return self._base
