import unittest
from datetime import datetime
from unittest.mock import MagicMock

from askbot.clients.qbittorrent import QBittorrentError
from askbot.llm.tools.calculator import calculate
from askbot.llm.tools.clock import get_current_time
from askbot.llm.tools.qbittorrent import QBITTORRENT_SCHEMA, QBittorrentTool


class TestCalculate(unittest.TestCase):
    def test_basic_arithmetic(self):
        cases = {
            "2+2": 4,
            "2 * (3 + 4)": 14,
            "7 // 2": 3,
            "7 % 4": 3,
            "2 ** 10": 1024,
            "-3 + 1": -2,
            "10 / 4": 2.5,
        }
        for expression, expected in cases.items():
            with self.subTest(expression=expression):
                result = calculate(expression)
                self.assertTrue(result.success, result)
                self.assertEqual(result.payload, {"expression": expression, "result": expected})

    def test_integral_float_is_reported_as_int(self):
        result = calculate("10 / 2")
        self.assertEqual(result.payload["result"], 5)
        self.assertIsInstance(result.payload["result"], int)

    def test_math_functions_and_constants(self):
        self.assertEqual(calculate("sqrt(16)").payload["result"], 4)
        self.assertEqual(calculate("pow(2, 8)").payload["result"], 256)
        self.assertEqual(calculate("max(1, 5, 3)").payload["result"], 5)
        self.assertAlmostEqual(calculate("sin(pi / 2)").payload["result"], 1)
        self.assertAlmostEqual(calculate("E").payload["result"], 2.718281828, places=6)

    def test_division_by_zero(self):
        result = calculate("1 / 0")
        self.assertFalse(result.success)
        self.assertIn("division", result.error)

    def test_rejects_non_math_code(self):
        for expression in ("__import__('os')", "open('x')", "().__class__", "x + 1", "'a' * 3", "lambda: 1", "sqrt(x=4)"):
            with self.subTest(expression=expression):
                self.assertFalse(calculate(expression).success)

    def test_syntax_error(self):
        result = calculate("2 +")
        self.assertFalse(result.success)
        self.assertIn("Syntax error", result.error)

    def test_huge_exponent_is_refused(self):
        self.assertFalse(calculate("10 ** 10 ** 10").success)

    def test_nested_powers_are_refused(self):
        result = calculate("((9**999)**999)**99")
        self.assertFalse(result.success)
        self.assertEqual(result.error, "Result too large")

    def test_huge_products_are_refused(self):
        self.assertFalse(calculate("9**999 * 9**999").success)
        self.assertTrue(calculate("2**1000 * 3").success)

    def test_int_too_large_for_float(self):
        result = calculate("10**400")
        self.assertFalse(result.success)
        self.assertEqual(result.error, "Result is not a valid number")

    def test_non_finite_result(self):
        result = calculate("exp(1000)")
        self.assertFalse(result.success)


class TestGetCurrentTime(unittest.TestCase):
    def test_defaults_to_utc(self):
        result = get_current_time()
        self.assertTrue(result.success)
        self.assertEqual(result.payload["timezone"], "UTC")
        self.assertEqual(datetime.fromisoformat(result.payload["iso"]).utcoffset().total_seconds(), 0)

    def test_named_timezone(self):
        result = get_current_time("Asia/Tokyo")
        self.assertTrue(result.success)
        self.assertEqual(result.payload["timezone"], "Asia/Tokyo")
        self.assertEqual(datetime.fromisoformat(result.payload["iso"]).utcoffset().total_seconds(), 9 * 3600)
        self.assertIn("JST", result.payload["datetime"])

    def test_invalid_timezone(self):
        result = get_current_time("Mars/Olympus_Mons")
        self.assertFalse(result.success)
        self.assertEqual(result.error, "Invalid timezone: Mars/Olympus_Mons")


class TestQBittorrentTool(unittest.TestCase):
    def setUp(self):
        self.client = MagicMock()
        self.tool = QBittorrentTool(self.client)

    def test_metadata(self):
        self.assertEqual(self.tool.name, "qbittorrent")
        self.assertIs(self.tool.schema, QBITTORRENT_SCHEMA)
        self.assertEqual(QBITTORRENT_SCHEMA["parameters"]["required"], ["action"])
        self.assertEqual(
            QBITTORRENT_SCHEMA["parameters"]["properties"]["action"]["enum"],
            ["list", "details", "speeds", "transfer_info"],
        )

    def test_list(self):
        self.client.get_torrents.return_value = [
            {"name": "ubuntu.iso", "hash": "abc", "state": "downloading", "progress": 0.456, "dlspeed": 1000, "upspeed": 10},
        ]
        result = self.tool.execute({"action": "list", "filter": "downloading"})

        self.client.get_torrents.assert_called_once_with("downloading")
        self.assertTrue(result.success)
        self.assertEqual(result.payload["count"], 1)
        self.assertEqual(result.payload["filter"], "downloading")
        self.assertEqual(
            result.payload["torrents"][0],
            {"name": "ubuntu.iso", "hash": "abc", "state": "downloading", "progress": 46, "dlSpeed": 1000, "upSpeed": 10},
        )

    def test_empty_list_defaults_filter(self):
        self.client.get_torrents.return_value = []
        result = self.tool.execute({"action": "list"})
        self.assertEqual(result.payload, {"action": "list", "filter": "all", "count": 0, "torrents": []})

    def test_details_requires_hash(self):
        result = self.tool.execute({"action": "details"})
        self.assertFalse(result.success)
        self.assertIn("hash", result.error)
        self.client.get_torrent_properties.assert_not_called()

    def test_details(self):
        self.client.get_torrent_properties.return_value = {
            "hash": "abc", "name": "ubuntu.iso", "comment": "", "total_size": 200,
            "total_downloaded": 50, "total_uploaded": 5, "addition_date": 1, "completion_date": -1,
        }
        result = self.tool.execute({"action": "details", "hash": "abc"})
        self.assertTrue(result.success)
        self.assertEqual(result.payload["torrent"]["progress"], 25)
        self.assertEqual(result.payload["torrent"]["totalSize"], 200)

    def test_details_zero_size(self):
        self.client.get_torrent_properties.return_value = {"hash": "abc", "total_size": 0, "total_downloaded": 0}
        result = self.tool.execute({"action": "details", "hash": "abc"})
        self.assertEqual(result.payload["torrent"]["progress"], 0)

    def test_speeds_and_transfer_info(self):
        self.client.get_transfer_info.return_value = {
            "dl_info_speed": 2048, "up_info_speed": 512, "dl_info_data": 10, "up_info_data": 20, "dht_nodes": 300,
        }
        speeds = self.tool.execute({"action": "speeds"})
        self.assertEqual(speeds.payload, {"action": "speeds", "downloadSpeed": 2048, "uploadSpeed": 512})

        info = self.tool.execute({"action": "transfer_info"})
        self.assertEqual(info.payload["totalDownloaded"], 10)
        self.assertEqual(info.payload["totalUploaded"], 20)
        self.assertEqual(info.payload["dhtNodes"], 300)

    def test_unknown_action(self):
        result = self.tool.execute({"action": "delete_everything"})
        self.assertFalse(result.success)
        self.assertEqual(result.error, "Unknown action: delete_everything")

    def test_client_error_becomes_failure(self):
        self.client.get_transfer_info.side_effect = QBittorrentError("Failed to fetch from qBittorrent: refused")
        result = self.tool.execute({"action": "speeds"})
        self.assertFalse(result.success)
        self.assertIn("refused", result.error)


if __name__ == "__main__":
    unittest.main()
