"""Tests for the prayer_api module."""

import copy
import datetime
import unittest
from unittest.mock import MagicMock, patch

import requests

from prayerwindows.errors import ProviderError
from prayerwindows.prayer_api import (
    DEFAULT_TIMETABLE,
    AladhanProvider,
    FixedTimesProvider,
    fetch_timings,
    parse_time,
)
from prayerwindows.windows import BasePrayerTimes

MOCK_RESPONSE = {
    "code": 200,
    "status": "OK",
    "data": {
        "timings": {
            "Fajr": "04:30",
            "Sunrise": "05:55",
            "Dhuhr": "12:00",
            "Asr": "15:30",
            "Maghrib": "18:15",
            "Isha": "19:30",
            "Midnight": "00:00",
            "Imsak": "04:20",
        },
        "date": {
            "gregorian": {
                "date": "01-03-2025",
                "weekday": {"en": "Saturday"},
            },
            "hijri": {
                "day": "1",
                "month": {"en": "Ramadan", "ar": "رَمَضان"},
                "year": "1446",
            },
        },
    },
}

DAY = datetime.date(2025, 3, 1)


def mock_response(body):
    resp = MagicMock()
    resp.json.return_value = body
    resp.raise_for_status = MagicMock()
    return resp


class TestFetchTimings(unittest.TestCase):
    @patch("prayerwindows.prayer_api.requests.get")
    def test_returns_six_timings(self, mock_get):
        mock_get.return_value = mock_response(MOCK_RESPONSE)

        timings = fetch_timings(-6.2, 106.8, DAY)

        self.assertEqual(timings["Fajr"], "04:30")
        self.assertEqual(timings["Maghrib"], "18:15")
        self.assertNotIn("Imsak", timings)
        url = mock_get.call_args[0][0]
        self.assertTrue(url.endswith("/timings/01-03-2025"))
        params = mock_get.call_args[1]["params"]
        self.assertEqual(params["method"], 3)
        self.assertEqual(params["school"], 0)

    @patch("prayerwindows.prayer_api.requests.get")
    def test_strips_timezone_suffix(self, mock_get):
        response = copy.deepcopy(MOCK_RESPONSE)
        response["data"]["timings"]["Fajr"] = "04:30 (WIB)"
        mock_get.return_value = mock_response(response)

        timings = fetch_timings(-6.2, 106.8, DAY)
        self.assertEqual(timings["Fajr"], "04:30")

    @patch("prayerwindows.prayer_api.requests.get")
    def test_raises_on_api_error(self, mock_get):
        mock_get.return_value = mock_response({"code": 400, "status": "Bad Request"})

        with self.assertRaises(ValueError):
            fetch_timings(-6.2, 106.8, DAY)


class TestParseTime(unittest.TestCase):
    def test_combines_with_date(self):
        self.assertEqual(parse_time("18:15", DAY), datetime.datetime(2025, 3, 1, 18, 15))

    def test_ignores_suffix(self):
        self.assertEqual(parse_time("04:30 (PKT)", DAY), datetime.datetime(2025, 3, 1, 4, 30))


class TestAladhanProvider(unittest.TestCase):
    @patch("prayerwindows.prayer_api.requests.get")
    def test_returns_base_times(self, mock_get):
        mock_get.return_value = mock_response(MOCK_RESPONSE)

        base = AladhanProvider()(-6.2, 106.8, DAY)

        self.assertIsInstance(base, BasePrayerTimes)
        self.assertEqual(base.date, DAY)
        self.assertEqual(base.fajr, datetime.datetime(2025, 3, 1, 4, 30))
        self.assertEqual(base.isha, datetime.datetime(2025, 3, 1, 19, 30))
        base.validate()

    @patch("prayerwindows.prayer_api.requests.get")
    def test_network_error_becomes_provider_error(self, mock_get):
        mock_get.side_effect = requests.ConnectionError("Network error")

        with self.assertRaises(ProviderError):
            AladhanProvider()(-6.2, 106.8, DAY)

    @patch("prayerwindows.prayer_api.requests.get")
    def test_api_error_becomes_provider_error(self, mock_get):
        mock_get.return_value = mock_response({"code": 400, "status": "Bad Request"})

        with self.assertRaises(ProviderError):
            AladhanProvider()(-6.2, 106.8, DAY)

    @patch("prayerwindows.prayer_api.requests.get")
    def test_missing_timing_becomes_provider_error(self, mock_get):
        response = copy.deepcopy(MOCK_RESPONSE)
        del response["data"]["timings"]["Asr"]
        mock_get.return_value = mock_response(response)

        with self.assertRaises(ProviderError):
            AladhanProvider()(-6.2, 106.8, DAY)


class TestFixedTimesProvider(unittest.TestCase):
    def test_same_timetable_every_day(self):
        provider = FixedTimesProvider()
        today = provider(0.0, 0.0, DAY)
        tomorrow = provider(10.0, 10.0, DAY + datetime.timedelta(days=1))

        self.assertEqual(today.fajr.time(), tomorrow.fajr.time())
        self.assertEqual(tomorrow.date, DAY + datetime.timedelta(days=1))
        self.assertEqual(today.maghrib.strftime("%H:%M"), DEFAULT_TIMETABLE["Maghrib"])

    def test_invalid_timetable_raises_provider_error(self):
        provider = FixedTimesProvider({"Fajr": "04:30"})
        with self.assertRaises(ProviderError):
            provider(0.0, 0.0, DAY)


if __name__ == "__main__":
    unittest.main()
