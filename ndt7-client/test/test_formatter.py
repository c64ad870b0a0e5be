"""Test suite for rendering and summarizing captured record streams."""

import sys
import os

# Add parent directory to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import pytest

from visualization.formatter import StreamFormatter, parse_records
from visualization.summary import format_summary, load_records, summarize


CAPTURED = """{"AppInfo":{"SRTT":1500.0,"RTTVar":250.0,"ElapsedTime":1000},"Test":"roundtrip"}

{"AppInfo":{"SRTT":2500.0,"RTTVar":350.0,"ElapsedTime":2000},"Test":"roundtrip"}

{"AppInfo":{"NumBytes":1250000,"ElapsedTime":1000000},"Test":"download"}

{"AppInfo":{"NumBytes":4096,"ElapsedTime":500000},"Origin":"server","Test":"download"}

{"AppInfo":{"NumBytes":2500000,"ElapsedTime":2000000},"Test":"download"}

{"Failure":"connection closed: 1000 (OK)","Test":"download"}

{"AppInfo":{"NumBytes":0,"ElapsedTime":0},"Test":"upload"}

{"AppInfo":{"NumBytes":500000,"ElapsedTime":1000000},"Test":"upload"}

""".splitlines(keepends=True)


class TestParseRecords:

    def test_skips_blank_and_garbage(self):
        lines = ["\n", "not json\n", "[1,2]\n", '{"Test":"download"}\n']
        assert list(parse_records(lines)) == [{"Test": "download"}]


class TestStreamFormatter:
    """Test cases for the live line renderer."""

    def test_rate_line(self):
        text = StreamFormatter().format_record(
            {"AppInfo": {"NumBytes": 1250000, "ElapsedTime": 1000000}, "Test": "download"}
        )
        assert text == "\rdownload: 10.00 Mbit/s (1250000 bytes in 1.00 s)"

    def test_zero_elapsed_renders(self):
        text = StreamFormatter().format_record(
            {"AppInfo": {"NumBytes": 0, "ElapsedTime": 0}, "Test": "upload"}
        )
        assert text == "\rupload: 0.00 Mbit/s (0 bytes in 0.00 s)"

    def test_round_trip_line(self):
        text = StreamFormatter().format_record(
            {"AppInfo": {"SRTT": 1500.0, "RTTVar": 250.0, "ElapsedTime": 1}, "Test": "roundtrip"}
        )
        assert text == "\rroundtrip: srtt 1.500 ms rttvar 0.250 ms"

    def test_failure_line(self):
        text = StreamFormatter().format_record({"Failure": "boom", "Test": "upload"})
        assert text == "\nupload: failure: boom\n"

    def test_unknown_shape_is_skipped(self):
        assert StreamFormatter().format_record({"TCPInfo": {}, "Test": "download"}) is None

    def test_separator_before_first_upload(self):
        rendered = StreamFormatter().render(CAPTURED)
        before, after = rendered.split("\rupload:", 1)
        assert before.endswith("\n")
        assert rendered.count("\r") == 7
        assert rendered.endswith("\n")

    def test_idempotent(self):
        formatter = StreamFormatter()
        assert formatter.render(CAPTURED) == formatter.render(CAPTURED)
        assert StreamFormatter().render(CAPTURED) == formatter.render(list(CAPTURED))

    def test_empty_stream(self):
        assert StreamFormatter().render([]) == ""


class TestSummary:
    """Test cases for the pandas summary."""

    def test_load_records(self):
        data = load_records(CAPTURED)
        assert len(data) == 8
        assert list(data.columns) == ['test', 'num_bytes', 'elapsed_us', 'srtt_ms', 'rttvar_ms', 'failure']

    def test_download_summary(self):
        summary = summarize(CAPTURED)
        download = summary["download"]
        assert download["num_bytes"] == 2500000
        assert download["elapsed_seconds"] == pytest.approx(2.0)
        assert download["throughput_mbps"] == pytest.approx(10.0)
        assert download["failure"] == "connection closed: 1000 (OK)"

    def test_upload_summary(self):
        upload = summarize(CAPTURED)["upload"]
        assert upload["samples"] == 2
        assert upload["throughput_mbps"] == pytest.approx(4.0)
        assert upload["failure"] is None

    def test_round_trip_summary(self):
        round_trip = summarize(CAPTURED)["roundtrip"]
        assert round_trip["samples"] == 2
        assert round_trip["avg_srtt_ms"] == pytest.approx(2.0)
        assert round_trip["p50_srtt_ms"] == pytest.approx(2.0)

    def test_empty_summary(self):
        assert summarize([]) == {}

    def test_format_summary(self):
        text = format_summary(summarize(CAPTURED))
        lines = text.split("\n")
        assert len(lines) == 3
        assert "10.00 Mbit/s" in lines[1]
        assert "[failure: connection closed: 1000 (OK)]" in lines[1]
        assert "srtt avg 2.000 ms" in lines[0]
