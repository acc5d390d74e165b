"""Base prayer times providers: the Aladhan API and a fixed timetable."""

import datetime
import logging

import requests

from prayerwindows.errors import ProviderError
from prayerwindows.windows import PRAYER_NAMES, BasePrayerTimes

ALADHAN_BASE = "https://api.aladhan.com/v1"

# Calculation method: 3 = Muslim World League
# 2 = ISNA, 4 = Mecca, 5 = Egypt, 11 = Singapore, 20 = Kemenag
DEFAULT_METHOD = 3
# Asr school: 0 = Shafi'i, 1 = Hanafi
DEFAULT_SCHOOL = 0

# Used when no network is available (Jakarta, roughly).
DEFAULT_TIMETABLE = {
    "Fajr": "04:40",
    "Sunrise": "05:55",
    "Dhuhr": "11:55",
    "Asr": "15:15",
    "Maghrib": "17:55",
    "Isha": "19:05",
}

logger = logging.getLogger(__name__)


def parse_time(time_str: str, date: datetime.date) -> datetime.datetime:
    """Combine an 'HH:MM' string (optionally suffixed, e.g. '04:30 (WIB)') with date."""
    hour, minute = map(int, time_str.strip()[:5].split(":"))
    return datetime.datetime.combine(date, datetime.time(hour, minute))


def base_times_from_timings(timings: dict, date: datetime.date) -> BasePrayerTimes:
    """Build BasePrayerTimes from a {prayer_name: 'HH:MM'} mapping."""
    values = {name.lower(): parse_time(timings[name], date) for name in PRAYER_NAMES}
    return BasePrayerTimes(date=date, **values)


def fetch_timings(
    lat: float,
    lon: float,
    date: datetime.date,
    method: int = DEFAULT_METHOD,
    school: int = DEFAULT_SCHOOL,
    timeout: int = 10,
) -> dict:
    """
    Fetch the six main prayer times for the given coordinates and date.

    Returns {prayer_name: "HH:MM"}.
    Raises requests.RequestException or ValueError on failure.
    """
    url = f"{ALADHAN_BASE}/timings/{date.strftime('%d-%m-%Y')}"
    params = {
        "latitude": lat,
        "longitude": lon,
        "method": method,
        "school": school,
    }
    logger.debug(f"Requesting {url} with {params}")
    resp = requests.get(url, params=params, timeout=timeout)
    resp.raise_for_status()
    body = resp.json()
    if body.get("code") != 200:
        raise ValueError(f"Aladhan API error: {body.get('status')}")

    raw_timings = body["data"]["timings"]
    return {name: raw_timings[name][:5] for name in PRAYER_NAMES}


class AladhanProvider:
    """Base prayer times computed remotely by api.aladhan.com."""

    def __init__(self, method: int = DEFAULT_METHOD, school: int = DEFAULT_SCHOOL, timeout: int = 10):
        self.method = method
        self.school = school
        self.timeout = timeout
        self.logger = logging.getLogger(self.__class__.__name__)

    def __call__(self, lat: float, lon: float, date: datetime.date) -> BasePrayerTimes:
        try:
            timings = fetch_timings(lat, lon, date, self.method, self.school, self.timeout)
            base = base_times_from_timings(timings, date)
        except requests.RequestException as exc:
            raise ProviderError(f"Prayer times request failed for {date}: {exc}") from exc
        except (KeyError, TypeError, ValueError) as exc:
            raise ProviderError(f"Unexpected prayer times response for {date}: {exc}") from exc
        self.logger.info(f"Fetched prayer times for {date} at ({lat}, {lon})")
        return base


class FixedTimesProvider:
    """The same 'HH:MM' timetable for every date, regardless of coordinates."""

    def __init__(self, timings: dict = None):
        self.timings = dict(timings or DEFAULT_TIMETABLE)

    def __call__(self, lat: float, lon: float, date: datetime.date) -> BasePrayerTimes:
        try:
            return base_times_from_timings(self.timings, date)
        except (KeyError, ValueError) as exc:
            raise ProviderError(f"Invalid fixed timetable: {exc}") from exc
