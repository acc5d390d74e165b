"""Tests for the console entry point."""

import unittest
from unittest.mock import patch

import prayertime_app
from prayerwindows.location import DEFAULT_LOCATION, Location
from prayerwindows.scheduler import Snapshot


class TestFormatStatus(unittest.TestCase):
    def test_active_window(self):
        line = prayertime_app.format_status(Snapshot(
            current_label="Tahajjud",
            current_category="recommended",
            next_label="Fajr",
            next_arabic_label="الفجر",
            time_remaining_formatted="Fajr in 3 hours",
        ))
        self.assertIn("Tahajjud (recommended)", line)
        self.assertIn("الفجر", line)
        self.assertIn("Fajr in 3 hours", line)
        self.assertNotIn("⚠", line)

    def test_error_without_window(self):
        line = prayertime_app.format_status(Snapshot(last_error="offline"))
        self.assertIn("No active prayer window", line)
        self.assertIn("⚠ offline", line)


class TestResolveLocation(unittest.TestCase):
    def test_command_line_coordinates(self):
        args = prayertime_app.parse_args(["--lat", "1.5", "--lon", "2.5", "--label", "Here"])
        location = prayertime_app.resolve_location(args)
        self.assertEqual(location, Location(1.5, 2.5, "Here"))

    @patch("prayertime_app.save_manual_location")
    def test_save_coordinates(self, mock_save):
        args = prayertime_app.parse_args(["--lat", "1.5", "--lon", "2.5", "--save"])
        location = prayertime_app.resolve_location(args)
        mock_save.assert_called_once_with(location)

    @patch("prayertime_app.load_manual_location")
    def test_manual_location(self, mock_load):
        mock_load.return_value = Location(3.0, 4.0, "Saved")
        location = prayertime_app.resolve_location(prayertime_app.parse_args([]))
        self.assertEqual(location.label, "Saved")

    @patch("prayertime_app.load_manual_location", return_value=None)
    def test_default_location(self, mock_load):
        location = prayertime_app.resolve_location(prayertime_app.parse_args([]))
        self.assertEqual(location, DEFAULT_LOCATION)


class TestMain(unittest.TestCase):
    @patch("prayerwindows.notifier._send_plyer")
    @patch("prayertime_app.get_location")
    @patch("prayertime_app.load_manual_location", return_value=None)
    @patch("prayertime_app.time.sleep", side_effect=KeyboardInterrupt)
    def test_offline_run_prints_status_and_stops(self, mock_sleep, mock_load, mock_get_location, mock_plyer):
        with patch("builtins.print") as mock_print:
            code = prayertime_app.main(["--offline"])

        self.assertEqual(code, 0)
        mock_print.assert_called_once()
        self.assertIn("next:", mock_print.call_args[0][0])
        mock_get_location.assert_not_called()


if __name__ == "__main__":
    unittest.main()
