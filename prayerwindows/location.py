"""Location detection using IP geolocation and manual config."""

import json
import logging
import os
from dataclasses import asdict, dataclass

import requests

from prayerwindows.errors import LocationError


@dataclass(frozen=True)
class Location:
    latitude: float
    longitude: float
    label: str = ""

    def to_dict(self) -> dict:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict) -> "Location":
        return cls(float(data["latitude"]), float(data["longitude"]), str(data.get("label", "")))


DEFAULT_LOCATION = Location(-6.2088, 106.8456, "Jakarta, Indonesia")

IPAPI_URL = "http://ip-api.com/json/"

CONFIG_DIR = os.path.join(os.path.expanduser("~"), ".prayertime")
CONFIG_FILE = os.path.join(CONFIG_DIR, "location.json")

logger = logging.getLogger(__name__)


def get_location(timeout: int = 5) -> Location:
    """
    Detect current location via IP geolocation.

    Raises LocationError with kind TIMEOUT or UNAVAILABLE on failure.
    """
    try:
        resp = requests.get(
            IPAPI_URL,
            params={"fields": "city,country,lat,lon,status,message"},
            timeout=timeout,
        )
        resp.raise_for_status()
        data = resp.json()
    except requests.Timeout as exc:
        raise LocationError(LocationError.TIMEOUT, f"IP geolocation timed out: {exc}") from exc
    except (requests.RequestException, ValueError) as exc:
        raise LocationError(LocationError.UNAVAILABLE, f"IP geolocation failed: {exc}") from exc

    if data.get("status") != "success":
        raise LocationError(
            LocationError.UNAVAILABLE,
            f"IP geolocation failed: {data.get('message', 'unknown error')}",
        )
    try:
        lat = float(data["lat"])
        lon = float(data["lon"])
    except (KeyError, TypeError, ValueError) as exc:
        raise LocationError(LocationError.UNAVAILABLE, f"IP geolocation returned no coordinates: {exc}") from exc

    label = ", ".join(part for part in (data.get("city"), data.get("country")) if part)
    logger.info(f"Detected location {label} ({lat}, {lon})")
    return Location(lat, lon, label)


def saved_location() -> Location:
    """Location provider backed by the manual location file."""
    location = load_manual_location()
    if location is None:
        raise LocationError(LocationError.UNAVAILABLE, "No manual location saved")
    return location


def save_manual_location(location: Location) -> None:
    """Save a manually-set location to the config file."""
    os.makedirs(CONFIG_DIR, exist_ok=True)
    with open(CONFIG_FILE, "w", encoding="utf-8") as f:
        json.dump(location.to_dict(), f, indent=2)


def load_manual_location():
    """Load a previously saved manual location, or return None."""
    if not os.path.isfile(CONFIG_FILE):
        return None
    try:
        with open(CONFIG_FILE, "r", encoding="utf-8") as f:
            data = json.load(f)
        return Location.from_dict(data)
    except (OSError, ValueError, KeyError, TypeError) as exc:
        logger.warning(f"Ignoring unreadable location file {CONFIG_FILE}: {exc}")
        return None


def clear_manual_location() -> None:
    """Remove the saved manual location config."""
    if os.path.isfile(CONFIG_FILE):
        os.remove(CONFIG_FILE)
