"""Partition a day into named prayer windows from the six base prayer times."""

import bisect
import datetime
import enum
import logging
from dataclasses import dataclass, field

from prayerwindows.errors import InvalidBaseTimesError

logger = logging.getLogger(__name__)

PRAYER_NAMES = ["Fajr", "Sunrise", "Dhuhr", "Asr", "Maghrib", "Isha"]

NIGHT = "Night"
FAJR = "Fajr"
ISHRAQ = "Ishraq"
DHUHA = "Dhuha"
FORBIDDEN = "Forbidden"
DHUHR = "Dhuhr"
ASR = "Asr"
MAGHRIB = "Maghrib"
ISHA = "Isha"
TAHAJJUD = "Tahajjud"

WINDOW_ORDER = [NIGHT, FAJR, ISHRAQ, DHUHA, FORBIDDEN, DHUHR, ASR, MAGHRIB, ISHA, TAHAJJUD]

ARABIC_LABELS = {
    NIGHT: "الليل",
    FAJR: "الفجر",
    ISHRAQ: "الإشراق",
    DHUHA: "الضحى",
    FORBIDDEN: "وقت النهي",
    DHUHR: "الظهر",
    ASR: "العصر",
    MAGHRIB: "المغرب",
    ISHA: "العشاء",
    TAHAJJUD: "التهجد",
}

WINDOW_DISPLAY = {
    NIGHT: "Malam",
    FAJR: "Subuh / Fajr",
    ISHRAQ: "Isyraq",
    DHUHA: "Dhuha",
    FORBIDDEN: "Terlarang",
    DHUHR: "Dzuhur / Dhuhr",
    ASR: "Ashar / Asr",
    MAGHRIB: "Maghrib",
    ISHA: "Isya / Isha",
    TAHAJJUD: "Tahajjud",
}

# Dhuha begins once the sun is a spear's length above the horizon and ends
# shortly before the zenith.
DHUHA_OFFSET = datetime.timedelta(minutes=15)
ZAWAL_MARGIN = datetime.timedelta(minutes=10)

ONE_DAY = datetime.timedelta(days=1)


class Category(str, enum.Enum):
    OBLIGATORY = "obligatory"
    RECOMMENDED = "recommended"
    DISCOURAGED = "discouraged"


@dataclass(frozen=True)
class BasePrayerTimes:
    """The six base prayer instants of one calendar date (naive local time)."""

    date: datetime.date
    fajr: datetime.datetime
    sunrise: datetime.datetime
    dhuhr: datetime.datetime
    asr: datetime.datetime
    maghrib: datetime.datetime
    isha: datetime.datetime

    def as_list(self) -> list:
        return [self.fajr, self.sunrise, self.dhuhr, self.asr, self.maghrib, self.isha]

    def validate(self) -> "BasePrayerTimes":
        """Raise InvalidBaseTimesError unless the instants strictly increase."""
        times = self.as_list()
        for i in range(1, len(times)):
            if not times[i - 1] < times[i]:
                raise InvalidBaseTimesError(
                    f"{PRAYER_NAMES[i]} ({times[i]:%H:%M}) is not after "
                    f"{PRAYER_NAMES[i - 1]} ({times[i - 1]:%H:%M}) on {self.date}"
                )
        return self


@dataclass(frozen=True)
class Window:
    label: str
    category: Category
    start: datetime.datetime
    end: datetime.datetime

    @property
    def duration(self) -> datetime.timedelta:
        return self.end - self.start

    @property
    def arabic_label(self) -> str:
        return ARABIC_LABELS.get(self.label, self.label)

    @property
    def display_name(self) -> str:
        return WINDOW_DISPLAY.get(self.label, self.label)

    def contains(self, now: datetime.datetime) -> bool:
        """Half-open membership: a boundary instant belongs to the window starting there."""
        return self.start <= now < self.end


@dataclass(frozen=True)
class DerivedDay:
    """
    Ordered, contiguous windows derived from one date's base times.

    ``following`` is the next day's Fajr window; it is the window that comes
    after Tahajjud, the last window of the day. Its end is estimated from
    today's Fajr duration since the next day's sunrise is not known here.
    """

    base: BasePrayerTimes
    next_fajr: datetime.datetime
    windows: tuple
    following: Window
    starts: tuple = field(init=False, repr=False, compare=False)

    def __post_init__(self):
        object.__setattr__(self, "starts", tuple(w.start for w in self.windows))

    @property
    def date(self) -> datetime.date:
        return self.base.date

    @property
    def start(self) -> datetime.datetime:
        return self.windows[0].start

    @property
    def end(self) -> datetime.datetime:
        return self.windows[-1].end

    def locate(self, now: datetime.datetime):
        """Return the index of the window containing now, or None if uncovered."""
        index = bisect.bisect_right(self.starts, now) - 1
        if index < 0 or not self.windows[index].contains(now):
            return None
        return index

    def window_after(self, index: int) -> Window:
        if index + 1 < len(self.windows):
            return self.windows[index + 1]
        return self.following

    def labels(self) -> list:
        return [w.label for w in self.windows]


def derive(
    base: BasePrayerTimes,
    next_fajr: datetime.datetime,
    previous_isha: datetime.datetime = None,
) -> DerivedDay:
    """
    Derive the day's windows from base times and the following day's Fajr.

    The first window is the Night guard ``[previous_isha, Fajr)``; it only
    matches when the previous day's windows could not be derived. The
    remaining windows cover ``[Fajr, next_fajr)`` without gaps.
    Raises InvalidBaseTimesError if the inputs are not strictly increasing.
    """
    base.validate()
    if previous_isha is None:
        previous_isha = base.isha - ONE_DAY
    if not previous_isha < base.fajr:
        raise InvalidBaseTimesError(
            f"Previous Isha ({previous_isha}) is not before Fajr ({base.fajr})"
        )
    if not base.isha < next_fajr:
        raise InvalidBaseTimesError(
            f"Next Fajr ({next_fajr}) is not after Isha ({base.isha})"
        )

    dhuha_start = min(base.sunrise + DHUHA_OFFSET, base.dhuhr)
    dhuha_end = base.dhuhr - ZAWAL_MARGIN
    # Tahajjud is the last third of the night, Maghrib to the next Fajr.
    night = next_fajr - base.maghrib
    tahajjud_start = base.maghrib + night * 2 / 3

    windows = [
        Window(NIGHT, Category.RECOMMENDED, previous_isha, base.fajr),
        Window(FAJR, Category.OBLIGATORY, base.fajr, base.sunrise),
        Window(ISHRAQ, Category.DISCOURAGED, base.sunrise, dhuha_start),
    ]

    if dhuha_end > dhuha_start:
        windows.append(Window(DHUHA, Category.RECOMMENDED, dhuha_start, dhuha_end))
        windows.append(Window(FORBIDDEN, Category.DISCOURAGED, dhuha_end, base.dhuhr))
    else:
        logger.warning(
            f"Daylight too short for Dhuha on {base.date}; "
            f"collapsing {dhuha_start:%H:%M}-{base.dhuhr:%H:%M} into {FORBIDDEN}"
        )
        if dhuha_start < base.dhuhr:
            windows.append(Window(FORBIDDEN, Category.DISCOURAGED, dhuha_start, base.dhuhr))

    windows.append(Window(DHUHR, Category.OBLIGATORY, base.dhuhr, base.asr))
    windows.append(Window(ASR, Category.OBLIGATORY, base.asr, base.maghrib))
    windows.append(Window(MAGHRIB, Category.OBLIGATORY, base.maghrib, base.isha))

    if tahajjud_start > base.isha:
        windows.append(Window(ISHA, Category.RECOMMENDED, base.isha, tahajjud_start))
    else:
        logger.warning(
            f"Isha at {base.isha:%H:%M} falls inside the last third of the night "
            f"on {base.date}; Tahajjud starts at Isha"
        )
        tahajjud_start = base.isha
    windows.append(Window(TAHAJJUD, Category.RECOMMENDED, tahajjud_start, next_fajr))

    following = Window(
        FAJR, Category.OBLIGATORY, next_fajr, next_fajr + (base.sunrise - base.fajr)
    )
    return DerivedDay(base=base, next_fajr=next_fajr, windows=tuple(windows), following=following)
