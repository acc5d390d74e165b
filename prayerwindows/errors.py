"""Error types raised by the prayer window engine."""


class PrayerTimeError(Exception):
    """Base class for every error raised by this package."""


class ProviderError(PrayerTimeError):
    """Base prayer times could not be computed or fetched."""


class InvalidBaseTimesError(PrayerTimeError):
    """Base prayer times are not strictly increasing."""


class LocationError(PrayerTimeError):
    """Location could not be determined."""

    PERMISSION_DENIED = "permission_denied"
    UNAVAILABLE = "unavailable"
    TIMEOUT = "timeout"
    UNSUPPORTED = "unsupported"

    def __init__(self, kind: str, message: str = ""):
        self.kind = kind
        super().__init__(message or kind.replace("_", " "))
