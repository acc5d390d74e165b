"""
Track the active prayer window for a location and count down to the next one.

The scheduler owns all mutable state. A single lock serialises initialize,
set_location and tick, so the periodic driver never observes a half-updated
DerivedDay while a (possibly slow) provider call is in flight.
"""

import datetime
import logging
import threading
from dataclasses import dataclass
from typing import Optional

from prayerwindows.errors import InvalidBaseTimesError, LocationError, ProviderError
from prayerwindows.location import DEFAULT_LOCATION
from prayerwindows.windows import NIGHT, ONE_DAY, derive

REFRESH_SECONDS = 1.0  # countdown resolution
RETRY_SECONDS = 60  # minimum gap between failed re-derivations


def _plural(count: int, unit: str) -> str:
    return f"{count} {unit}" if count == 1 else f"{count} {unit}s"


def format_remaining(remaining: datetime.timedelta, next_name: str) -> str:
    """Render the countdown in its largest whole unit, e.g. 'Fajr in 3 hours'."""
    seconds = max(0, int(remaining.total_seconds()))
    if seconds >= 3600:
        amount = _plural(seconds // 3600, "hour")
    elif seconds >= 60:
        amount = _plural(seconds // 60, "minute")
    else:
        amount = _plural(seconds, "second")
    return f"{next_name} in {amount}"


@dataclass(frozen=True)
class Snapshot:
    """Read-only view of the scheduler for display."""

    current_label: Optional[str] = None
    current_category: Optional[str] = None
    next_label: Optional[str] = None
    next_arabic_label: Optional[str] = None
    time_remaining_formatted: str = ""
    last_error: Optional[str] = None


class PrayerScheduler:
    """
    Holds the current location and DerivedDay and keeps an index to the
    active window.

    ``provider`` is any callable ``(lat, lon, date) -> BasePrayerTimes``
    raising ProviderError. ``clock`` returns naive local datetimes.
    With ``interval=None`` no driver thread is started and the caller
    drives ``tick`` itself.
    """

    def __init__(self, provider, clock=None, interval=REFRESH_SECONDS, on_transition=None):
        self.provider = provider
        self.clock = clock or datetime.datetime.now
        self.interval = interval
        self.on_transition = on_transition
        self.logger = logging.getLogger(self.__class__.__name__)

        self._lock = threading.RLock()
        self._stop_event = threading.Event()
        self._thread = None
        self._running = False
        self._reset()

    def _reset(self):
        self.location = None
        self.using_default_location = False
        self.day = None
        self.last_sampled_at = None
        self.last_error = None
        self._index = None
        self._derived_on = None
        self._failed_at = None
        self._last_exception = None

    @property
    def running(self) -> bool:
        return self._running

    # ──────────────────────────────────────────────────────────────────────
    # Lifecycle
    # ──────────────────────────────────────────────────────────────────────
    def start(self, location) -> None:
        """Start from scratch: drop any previous state, then initialize."""
        self.stop()
        with self._lock:
            self._reset()
        self.initialize(location)

    def initialize(self, location) -> None:
        """
        Derive the windows around now for location and start the driver.

        Raises ProviderError (or InvalidBaseTimesError) only when there is no
        previous DerivedDay to fall back on.
        """
        with self._lock:
            self._use_location(location)
            if not self._rederive(self.clock(), force=True) and self.day is None:
                raise self._last_exception
            self._start_driver()

    def stop(self) -> None:
        """Halt the driver. No state is mutated by it after this returns."""
        with self._lock:
            thread = self._thread
            self._thread = None
            self._running = False
            self._stop_event.set()
        if thread is not None and thread is not threading.current_thread():
            thread.join()
        self.logger.debug("Scheduler stopped")

    def _start_driver(self):
        if self._running or self.interval is None:
            return
        self._running = True
        self._stop_event = threading.Event()
        self._thread = threading.Thread(
            target=self._run, args=(self._stop_event,), name="prayer-scheduler", daemon=True
        )
        self._thread.start()

    def _run(self, stop_event):
        while not stop_event.wait(self.interval):
            try:
                with self._lock:
                    if stop_event.is_set():
                        return
                    self.tick()
            except Exception:
                self.logger.exception("Scheduler tick failed")

    # ──────────────────────────────────────────────────────────────────────
    # Location
    # ──────────────────────────────────────────────────────────────────────
    def set_location(self, location) -> bool:
        """Switch location and re-derive immediately. Returns False on failure."""
        with self._lock:
            self._use_location(location)
            return self._rederive(self.clock(), force=True)

    def refresh_location(self, location_provider) -> bool:
        """
        Ask location_provider for a new location and switch to it.

        A LocationError keeps the current location, or switches to
        DEFAULT_LOCATION when there is none, and is reported through
        last_error.
        """
        try:
            location = location_provider()
        except LocationError as exc:
            self.logger.warning(f"Location unavailable ({exc.kind}): {exc}")
            with self._lock:
                if self.location is None:
                    self.set_location(DEFAULT_LOCATION)
                if self.last_error is None:
                    self.last_error = f"{exc} (keeping {self.location.label})"
            return False
        return self.set_location(location)

    def _use_location(self, location):
        self.location = location
        self.using_default_location = location == DEFAULT_LOCATION

    # ──────────────────────────────────────────────────────────────────────
    # Derivation
    # ──────────────────────────────────────────────────────────────────────
    def _derive_for(self, now):
        lat, lon = self.location.latitude, self.location.longitude
        today = now.date()
        base = self.provider(lat, lon, today)
        if now < base.fajr:
            # Before Fajr the night windows belong to yesterday's derivation.
            yesterday = today - ONE_DAY
            try:
                return derive(self.provider(lat, lon, yesterday), base.fajr)
            except ProviderError as exc:
                self.logger.warning(f"No base times for {yesterday} ({exc}); using the night guard window")
        tomorrow = self.provider(lat, lon, today + ONE_DAY)
        return derive(base, tomorrow.fajr)

    def _rederive(self, now, force=False) -> bool:
        if self.location is None:
            return False
        if not force and self._failed_at is not None:
            if datetime.timedelta(0) <= now - self._failed_at < datetime.timedelta(seconds=RETRY_SECONDS):
                return False
        try:
            day = self._derive_for(now)
        except (ProviderError, InvalidBaseTimesError) as exc:
            self._last_exception = exc
            self._failed_at = now
            self.last_error = str(exc)
            self.logger.error(f"Could not derive prayer windows for {now.date()}: {exc}")
            return False

        previous = self.current_window()
        self.day = day
        self._derived_on = now.date()
        self._failed_at = None
        self.last_error = None
        self._index = day.locate(now)
        self.last_sampled_at = now
        if self._index is None:
            self.last_error = f"No prayer window contains {now:%Y-%m-%d %H:%M:%S}"
            self.logger.error(self.last_error)
        else:
            self.logger.info(
                f"Derived {len(day.windows)} windows for {day.date}; current {self.current_window().label}"
            )
        self._notify(previous)
        return True

    # ──────────────────────────────────────────────────────────────────────
    # Sampling
    # ──────────────────────────────────────────────────────────────────────
    def tick(self, now=None):
        """Sample the clock, advance the active window, return the time remaining."""
        with self._lock:
            if now is None:
                now = self.clock()
            self._sample(now)
            return self._remaining(now)

    def _sample(self, now):
        if self.location is None:
            return
        if self.day is None or now.date() != self._derived_on:
            if self._rederive(now):
                return
            if self.day is None:
                return

        if self._index is None or now < self.last_sampled_at:
            self._rescan(now)
            return

        current = self.day.windows[self._index]
        if now < current.end:
            self.last_sampled_at = now
            return

        following = self._index + 1
        if following < len(self.day.windows) and now < self.day.windows[following].end:
            self._move_to(following, now)
        else:
            self._rescan(now)

    def _rescan(self, now):
        index = self.day.locate(now)
        if index is not None and self.day.windows[index].label == NIGHT and self._rederive(now):
            # Before Fajr the previous day's night windows apply; the guard
            # stays only if they cannot be derived.
            return
        if index is not None:
            self._move_to(index, now)
        elif not self._rederive(now):
            # Keep the stale window; time_remaining clamps at zero.
            self.last_sampled_at = now

    def _move_to(self, index, now):
        previous = self.current_window()
        self._index = index
        self.last_sampled_at = now
        self._notify(previous)

    def _notify(self, previous):
        current = self.current_window()
        if self.on_transition is None or current is None or previous is None or current.label == previous.label:
            return
        self.logger.info(f"Window changed: {previous.label} -> {current.label}")
        try:
            self.on_transition(previous, current)
        except Exception:
            self.logger.exception("Transition callback failed")

    # ──────────────────────────────────────────────────────────────────────
    # Accessors
    # ──────────────────────────────────────────────────────────────────────
    def current_window(self):
        if self.day is None or self._index is None:
            return None
        return self.day.windows[self._index]

    def next_window(self):
        if self.day is None or self._index is None:
            return None
        return self.day.window_after(self._index)

    def _remaining(self, now):
        following = self.next_window()
        if following is None:
            return None
        return max(following.start - now, datetime.timedelta(0))

    def time_remaining(self, now=None):
        """Time until the next window starts; never negative, None without an active window."""
        with self._lock:
            if now is None:
                now = self.clock()
            following = self.next_window()
            if following is not None and now >= following.start:
                self._sample(now)
            return self._remaining(now)

    def snapshot(self, now=None) -> Snapshot:
        with self._lock:
            remaining = self.time_remaining(now)
            current = self.current_window()
            following = self.next_window()
            if current is None or following is None:
                return Snapshot(last_error=self.last_error)
            return Snapshot(
                current_label=current.label,
                current_category=current.category.value,
                next_label=following.label,
                next_arabic_label=following.arabic_label,
                time_remaining_formatted=format_remaining(remaining, following.label),
                last_error=self.last_error,
            )
