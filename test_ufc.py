"""Tests for the ufc command-line entry point."""

import json
import os
import tempfile
import unittest

import ufc

EXAMPLES_DIR = os.path.join(os.path.dirname(os.path.abspath(__file__)), "examples")


class TestCLI(unittest.TestCase):
    """Test cases for argument handling and exit codes."""

    def setUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        self.tmp = self._tmp.name

    def tearDown(self):
        self._tmp.cleanup()

    def _write_events(self, events, name="device.json"):
        path = os.path.join(self.tmp, name)
        with open(path, "w", encoding="utf-8") as f:
            json.dump({"filename": "device.uf", "events": events}, f)
        return path

    def test_parse_arguments(self):
        args = ufc.parse_arguments(
            ["events.json", "-p", "p.params", "-o", "out.json", "-v", "--drop-invalid-edges"]
        )
        self.assertEqual(args.events_path, "events.json")
        self.assertEqual(args.params_path, "p.params")
        self.assertEqual(args.output_path, "out.json")
        self.assertTrue(args.verbose)
        self.assertTrue(args.drop_invalid_edges)
        self.assertFalse(args.strict_duplicates)

    def test_valid_example_writes_model(self):
        output = os.path.join(self.tmp, "out", "model.json")
        code = ufc.main(
            [
                os.path.join(EXAMPLES_DIR, "cell_sorter.events.json"),
                "-p",
                os.path.join(EXAMPLES_DIR, "cell_sorter.params"),
                "-o",
                output,
            ]
        )
        self.assertEqual(code, ufc.EXIT_OK)
        with open(output, encoding="utf-8") as f:
            model = json.load(f)
        self.assertTrue(model["valid"])
        self.assertEqual(model["device_name"], "cell_sorter")
        self.assertEqual(model["parameters"]["channel_spacing"], 150)
        self.assertEqual(len(model["device_graph"]["edges"]), 5)

    def test_semantic_errors_exit_invalid(self):
        path = self._write_events(
            [
                {"event": "ports", "identifiers": ["a", "a"], "radius": 1},
                {
                    "event": "channel",
                    "identifier": "c",
                    "source": {"identifier": "a", "port": 1},
                    "target": {"identifier": "z", "port": 1},
                },
            ]
        )
        with self.assertLogs(level="ERROR") as logs:
            code = ufc.main([path])
        self.assertEqual(code, ufc.EXIT_INVALID)
        joined = "\n".join(logs.output)
        self.assertIn("Duplicated identifier 'a'", joined)
        self.assertIn("Undefined identifier 'z'", joined)

    def test_drop_invalid_edges_flag(self):
        path = self._write_events(
            [
                {"event": "nodes", "identifiers": ["a"]},
                {
                    "event": "channel",
                    "identifier": "c",
                    "source": {"identifier": "a", "port": 1},
                    "target": {"identifier": "z", "port": 1},
                },
            ]
        )
        output = os.path.join(self.tmp, "model.json")
        code = ufc.main([path, "-o", output, "--drop-invalid-edges"])
        self.assertEqual(code, ufc.EXIT_INVALID)
        with open(output, encoding="utf-8") as f:
            self.assertEqual(json.load(f)["device_graph"]["edges"], [])

    def test_malformed_input_exits_fatal_without_output(self):
        path = self._write_events(
            [
                {"event": "nodes", "identifiers": ["a"]},
                {"event": "malformed", "line": 2, "column": 1},
            ]
        )
        output = os.path.join(self.tmp, "model.json")
        code = ufc.main([path, "-o", output])
        self.assertEqual(code, ufc.EXIT_FATAL)
        self.assertFalse(os.path.exists(output))

    def test_unreadable_inputs_exit_fatal(self):
        self.assertEqual(ufc.main([os.path.join(self.tmp, "missing.json")]), ufc.EXIT_FATAL)

        path = self._write_events([{"event": "header", "name": "d"}])
        params = os.path.join(self.tmp, "bad.params")
        with open(params, "w", encoding="utf-8") as f:
            f.write("channelWidth = wide\n")
        self.assertEqual(ufc.main([path, "-p", params]), ufc.EXIT_FATAL)

    def test_bad_source_position_exits_fatal(self):
        path = self._write_events(
            [
                {"event": "nodes", "identifiers": ["a", "b"]},
                {
                    "event": "channel",
                    "identifier": "c",
                    "source": {"identifier": "a", "port": 1, "port_position": 7},
                    "target": {"identifier": "b", "port": 1},
                },
            ]
        )
        self.assertEqual(ufc.main([path]), ufc.EXIT_FATAL)

    def test_version_exits_cleanly(self):
        with self.assertRaises(SystemExit) as ctx:
            ufc.parse_arguments(["--version"])
        self.assertEqual(ctx.exception.code, 0)
        self.assertEqual(ufc.main(["--version"]), 0)


if __name__ == "__main__":
    unittest.main()
