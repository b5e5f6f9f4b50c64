# Copyright (c) Meta Platforms, Inc. and affiliates.

"""
Tests for the etrace command line.
"""

import json
import unittest

from click.testing import CliRunner
from etrace.cli import main
from tests.test_base import (
    BaseEventTest,
    INVALID_UTF8_LINE,
    PROCESS_START_RECORD,
    SAMPLE_RECORDS,
    to_ndjson,
)


def summary_value(output: str, label: str) -> str:
    """Value printed after a summary label."""
    for line in output.splitlines():
        if line.startswith(label):
            return line[len(label) :].strip()
    raise AssertionError(f"{label!r} not found in output:\n{output}")


class TestTraceCommand(BaseEventTest):
    def setUp(self):
        super().setUp()
        self.runner = CliRunner()
        self.event_file = str(self.create_event_file())

    def invoke(self, *args, **kwargs):
        return self.runner.invoke(main, ["trace", *args], **kwargs)

    def test_event_and_where_filters(self):
        result = self.invoke(
            "--file", self.event_file, "--event", "GC/Start", "--where", "Reason=Small"
        )
        self.assertEqual(result.exit_code, 0, result.output)
        self.assertIn("Processing start time:", result.output)
        self.assertIn("GC/Start [PNAME=app PID=4 TID=10", result.output)
        self.assertNotIn("GC/Stop [", result.output)
        self.assertEqual(summary_value(result.output, "Processed events:"), "3")
        self.assertEqual(summary_value(result.output, "Displayed events:"), "1")
        self.assertEqual(summary_value(result.output, "Events lost:"), "0")

    def test_comma_separated_filters_are_ored(self):
        result = self.invoke(
            "--file", self.event_file, "--where", "ImageFileName=notepad,Reason=Small"
        )
        self.assertEqual(result.exit_code, 0, result.output)
        self.assertEqual(summary_value(result.output, "Displayed events:"), "2")

    def test_pid_filter(self):
        result = self.invoke("--file", self.event_file, "--pid", "4")
        self.assertEqual(result.exit_code, 0, result.output)
        self.assertEqual(summary_value(result.output, "Displayed events:"), "2")

    def test_raw_filter(self):
        result = self.invoke("--file", self.event_file, "--raw", "notepad")
        self.assertEqual(result.exit_code, 0, result.output)
        self.assertIn("Process/Start [PNAME=svc", result.output)
        self.assertEqual(summary_value(result.output, "Displayed events:"), "1")

    def test_raw_and_where_conflict(self):
        result = self.invoke("--file", self.event_file, "--raw", "x", "--where", "A=1")
        self.assertEqual(result.exit_code, 1)
        self.assertIn("--raw and --where cannot be used together", result.output)
        self.assertNotIn("Processing start time:", result.output)

    def test_unknown_keyword(self):
        result = self.invoke("--clr", "Bogus")
        self.assertEqual(result.exit_code, 1)
        self.assertIn("Unknown ClrKeywords name: 'Bogus'", result.output)

    def test_nothing_to_collect(self):
        result = self.invoke()
        self.assertEqual(result.exit_code, 1)
        self.assertIn("No events to collect", result.output)

    def test_keywords_with_file(self):
        result = self.invoke("--file", self.event_file, "--kernel", "Process")
        self.assertEqual(result.exit_code, 1)
        self.assertIn("not supported when parsing event files", result.output)

    def test_malformed_filter(self):
        result = self.invoke("--file", self.event_file, "--where", "Reason")
        self.assertEqual(result.exit_code, 1)
        self.assertIn("Invalid filter: 'Reason'", result.output)

    def test_missing_file(self):
        result = self.invoke("--file", str(self.temp_dir / "missing.ndjson"))
        self.assertEqual(result.exit_code, 2)

    def test_stats(self):
        result = self.invoke("--file", self.event_file, "--stats")
        self.assertEqual(result.exit_code, 0, result.output)
        self.assertEqual(result.output.count("Events by name"), 1)
        self.assertIn("Events by process", result.output)
        self.assertNotIn("GC/Start [", result.output)
        self.assertEqual(summary_value(result.output, "Displayed events:"), "3")

    def test_table_fields(self):
        result = self.invoke(
            "--file", self.event_file, "--field", "Event,PID,Reason[10]", "--width", "80"
        )
        self.assertEqual(result.exit_code, 0, result.output)
        lines = result.output.splitlines()
        header = next(i for i, line in enumerate(lines) if line.startswith("Event "))
        self.assertTrue(lines[header].split() == ["Event", "PID", "Reason"])
        self.assertTrue(set(lines[header + 1]) == {"-"})
        self.assertIn("Small", lines[header + 2])
        self.assertIn("<null>", lines[header + 3])

    def test_compressed_file(self):
        path = str(self.create_event_file(filename="events.ndjson.zst", compress=True))
        result = self.invoke("--file", path)
        self.assertEqual(result.exit_code, 0, result.output)
        self.assertEqual(summary_value(result.output, "Processed events:"), "3")

    def test_invalid_records_are_lost(self):
        content = to_ndjson(SAMPLE_RECORDS) + "not json\n"
        path = str(self.create_temp_file("events.ndjson", content))
        result = self.invoke("--file", path)
        self.assertEqual(result.exit_code, 0, result.output)
        self.assertEqual(summary_value(result.output, "Processed events:"), "3")
        self.assertEqual(summary_value(result.output, "Events lost:"), "1")

    def test_invalid_utf8_record_is_lost(self):
        data = INVALID_UTF8_LINE + to_ndjson(SAMPLE_RECORDS).encode("utf-8")
        path = str(self.create_binary_event_file(data, compress=True))
        result = self.invoke("--file", path)
        self.assertEqual(result.exit_code, 0, result.output)
        self.assertEqual(summary_value(result.output, "Processed events:"), "3")
        self.assertEqual(summary_value(result.output, "Events lost:"), "1")

    def test_live_session_invalid_utf8_is_lost(self):
        data = to_ndjson(SAMPLE_RECORDS[:1]).encode("utf-8") + INVALID_UTF8_LINE
        data += to_ndjson(SAMPLE_RECORDS[1:]).encode("utf-8")
        result = self.invoke("--clr", "GC", input=data)
        self.assertEqual(result.exit_code, 0, result.output)
        self.assertEqual(summary_value(result.output, "Processed events:"), "2")
        self.assertEqual(summary_value(result.output, "Events lost:"), "1")

    def test_live_session_from_stdin(self):
        result = self.invoke("--clr", "GC", input=to_ndjson(SAMPLE_RECORDS))
        self.assertEqual(result.exit_code, 0, result.output)
        self.assertEqual(summary_value(result.output, "Processed events:"), "2")
        self.assertNotIn("Process/Start [", result.output)

    def test_live_session_other_provider(self):
        record = dict(PROCESS_START_RECORD, provider="Custom-Provider")
        result = self.invoke("--other", "custom-provider", input=to_ndjson([record]))
        self.assertEqual(result.exit_code, 0, result.output)
        self.assertEqual(summary_value(result.output, "Displayed events:"), "1")

    def test_verbose_prints_configuration(self):
        result = self.invoke("--file", self.event_file, "--where", "Reason=Small", "-v")
        self.assertEqual(result.exit_code, 0, result.output)
        self.assertIn("Source: file ", result.output)
        self.assertIn("Filter 1: Reason=Small", result.output)


class TestListCommand(unittest.TestCase):
    def setUp(self):
        self.runner = CliRunner()

    def test_kernel_only(self):
        result = self.runner.invoke(main, ["list", "--kernel"])
        self.assertEqual(result.exit_code, 0)
        self.assertIn("FileIOInit", result.output)
        self.assertNotIn("CLR keywords", result.output)

    def test_both_by_default(self):
        result = self.runner.invoke(main, ["list"])
        self.assertEqual(result.exit_code, 0)
        self.assertIn("Supported CLR keywords", result.output)
        self.assertIn("Supported kernel keywords", result.output)
        self.assertIn("\tGCHeapAndTypeNames", result.output)


class TestValidateCommand(BaseEventTest):
    def setUp(self):
        super().setUp()
        self.runner = CliRunner()

    def test_valid_file(self):
        result = self.runner.invoke(main, ["validate", str(self.create_event_file())])
        self.assertEqual(result.exit_code, 0)
        self.assertIn("Valid event file", result.output)
        self.assertIn("Records:      3", result.output)

    def test_invalid_file(self):
        path = self.create_temp_file("bad.ndjson", '{"event": "X"}\n')
        result = self.runner.invoke(main, ["validate", str(path)])
        self.assertEqual(result.exit_code, 1)
        self.assertIn("Validation failed", result.output)
        self.assertIn("Line 1:", result.output)

    def test_invalid_utf8(self):
        path = self.create_binary_event_file(INVALID_UTF8_LINE)
        result = self.runner.invoke(main, ["validate", str(path)])
        self.assertEqual(result.exit_code, 1)
        self.assertIn("Line 1: invalid UTF-8", result.output)

    def test_json_output(self):
        result = self.runner.invoke(main, ["validate", "--json", str(self.create_event_file())])
        self.assertEqual(result.exit_code, 0)
        self.assertTrue(json.loads(result.output)["valid"])

    def test_quiet(self):
        path = self.create_temp_file("bad.ndjson", "garbage\n")
        result = self.runner.invoke(main, ["validate", "-q", str(path)])
        self.assertEqual(result.exit_code, 1)
        self.assertEqual(result.output, "")


class TestMain(unittest.TestCase):
    def test_version(self):
        result = CliRunner().invoke(main, ["--version"])
        self.assertEqual(result.exit_code, 0)
        self.assertIn("etrace", result.output)

    def test_help_lists_commands(self):
        result = CliRunner().invoke(main, ["--help"])
        self.assertEqual(result.exit_code, 0)
        for name in ("trace", "list", "validate"):
            self.assertIn(name, result.output)


if __name__ == "__main__":
    unittest.main()
