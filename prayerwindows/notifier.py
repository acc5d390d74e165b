"""Desktop notifications for prayer window changes and upcoming prayers."""

import datetime
import logging

from plyer import notification as plyer_notification

from prayerwindows.windows import Category

APP_NAME = "Prayer Time"
APP_ICON = ""  # Path to icon file; empty = default

# Minutes before an obligatory prayer at which a reminder is sent.
REMINDER_MINUTES = (10, 5)
REMINDER_GRACE = datetime.timedelta(minutes=1)

logger = logging.getLogger(__name__)


def _send_plyer(title: str, message: str, timeout: int = 10) -> None:
    """Send a desktop notification via plyer (cross-platform)."""
    kwargs = dict(
        app_name=APP_NAME,
        title=title,
        message=message,
        timeout=timeout,
    )
    if APP_ICON:
        kwargs["app_icon"] = APP_ICON
    try:
        plyer_notification.notify(**kwargs)
    except Exception as exc:
        # No notification backend on this desktop; the console still shows it.
        logger.warning(f"Desktop notification failed: {exc}")


def notify_reminder(display_name: str, minutes: int, callback=None) -> None:
    """
    Send a desktop notification N minutes before a prayer window starts.
    Optionally calls callback(title, message).
    """
    title = f"🕌 {display_name} — {minutes} minutes"
    message = f"{display_name} prayer starts in {minutes} minutes. Prepare for prayer."
    _send_plyer(title, message, timeout=15)
    if callback:
        callback(title, message)


def notify_window_started(window, callback=None) -> None:
    """Notify that a prayer window has begun."""
    if window.category is Category.OBLIGATORY:
        title = f"🕌 {window.display_name} — Time to Pray!"
        message = f"It is now time for {window.display_name} prayer. Allahu Akbar!"
    elif window.category is Category.DISCOURAGED:
        title = f"⏳ {window.display_name}"
        message = f"{window.display_name} has begun; voluntary prayer is discouraged until {window.end:%H:%M}."
    else:
        title = f"🌙 {window.display_name}"
        message = f"{window.display_name} has begun and lasts until {window.end:%H:%M}."
    _send_plyer(title, message, timeout=30)
    if callback:
        callback(title, message)


class ReminderTracker:
    """
    Sends each reminder once per obligatory window, as the countdown to it
    crosses 10 and 5 minutes. Reminders whose moment has already passed by
    more than REMINDER_GRACE are skipped.
    """

    def __init__(self, minutes=REMINDER_MINUTES, callback=None):
        self.minutes = tuple(sorted(minutes, reverse=True))
        self.callback = callback
        self._window_start = None
        self._sent = set()

    def check(self, window, remaining: datetime.timedelta) -> list:
        """Send the reminders due for window; returns the minute marks sent."""
        if window is None or remaining is None or window.category is not Category.OBLIGATORY:
            return []
        if window.start != self._window_start:
            self._window_start = window.start
            self._sent.clear()

        sent = []
        for minutes in self.minutes:
            mark = datetime.timedelta(minutes=minutes)
            if minutes in self._sent or remaining > mark:
                continue
            self._sent.add(minutes)
            if mark - remaining < REMINDER_GRACE:
                notify_reminder(window.display_name, minutes, self.callback)
                sent.append(minutes)
        return sent
