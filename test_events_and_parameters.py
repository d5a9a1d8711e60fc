"""Tests for the JSON event loader and the design parameter file."""

import json
import os
import tempfile
import unittest

from uf_analyzer import (
    DeclareCellTrapEvent,
    DeclareChannelEvent,
    DeclarePortsEvent,
    EnterLayerEvent,
    EventStreamError,
    HeaderEvent,
    Layer,
    MalformedNodeEvent,
    ParameterError,
    Parameters,
    load_event_file,
    load_events,
    load_parameters,
    semantic_check,
)
from uf_analyzer.parameters import parse_parameters

EXAMPLES_DIR = os.path.join(os.path.dirname(os.path.abspath(__file__)), "examples")


class TestEventLoading(unittest.TestCase):
    """Test cases for turning JSON documents into declaration events."""

    def test_document_with_filename(self):
        stream = load_events(
            {
                "filename": "chip.uf",
                "events": [
                    {"event": "header", "name": "chip"},
                    {"event": "enter_layer", "layer": "flow"},
                    {"event": "ports", "identifiers": ["a", "b"], "radius": 5},
                ],
            }
        )
        self.assertEqual(stream.filename, "chip.uf")
        self.assertEqual(len(stream), 3)
        self.assertEqual(stream.events[0], HeaderEvent("chip"))
        self.assertEqual(stream.events[1], EnterLayerEvent(Layer.FLOW))
        ports = stream.events[2]
        self.assertIsInstance(ports, DeclarePortsEvent)
        self.assertEqual([n.text for n in ports.identifiers], ["a", "b"])
        self.assertEqual(ports.radius, 5.0)

    def test_bare_list(self):
        stream = load_events([{"event": "nodes", "identifiers": ["n"]}], filename="x.uf")
        self.assertEqual(stream.filename, "x.uf")
        self.assertEqual(len(stream), 1)

    def test_positions_are_attached(self):
        stream = load_events(
            {
                "filename": "chip.uf",
                "events": [
                    {
                        "event": "channel",
                        "identifier": {"name": "c1", "line": 8, "column": 9},
                        "source": {"identifier": "a", "port": 1, "line": 8, "column": 17},
                        "target": {
                            "identifier": {"name": "b", "line": 8, "column": 24},
                            "port": 2,
                            "port_position": {"line": 8, "column": 26},
                        },
                        "line": 8,
                        "column": 1,
                    }
                ],
            }
        )
        channel = stream.events[0]
        self.assertIsInstance(channel, DeclareChannelEvent)
        self.assertEqual(channel.identifier.location.line, 8)
        self.assertEqual(channel.identifier.location.file_path, "chip.uf")
        self.assertEqual(channel.source.identifier.location.column, 17)
        self.assertEqual(channel.target.identifier.location.column, 24)
        self.assertEqual(channel.target.port_location.column, 26)
        self.assertEqual(channel.target.port, 2)

    def test_cell_trap_and_malformed(self):
        stream = load_events(
            [
                {
                    "event": "cell_trap",
                    "type": "SQUARE CELL TRAP",
                    "identifiers": ["t"],
                    "params": {"chamber_width": 3},
                },
                {"event": "malformed", "text": "port ;", "line": 2},
            ]
        )
        trap, malformed = stream.events
        self.assertIsInstance(trap, DeclareCellTrapEvent)
        self.assertEqual(dict(trap.params), {"chamber_width": 3})
        self.assertIsInstance(malformed, MalformedNodeEvent)
        self.assertEqual(malformed.location.line, 2)
        self.assertEqual(malformed.location.column, 0)

    def test_camel_case_params_are_normalized(self):
        stream = load_events(
            [{"event": "mixer", "identifier": "m", "params": {"bendLength": 10, "numBends": 2}}]
        )
        self.assertEqual(dict(stream.events[0].params), {"bend_length": 10, "num_bends": 2})

    def test_loader_errors(self):
        bad_documents = [
            {"filename": "x"},
            {"events": "nope"},
            [{"event": "teleporter"}],
            [{"name": "no kind"}],
            [{"event": "header"}],
            [{"event": "enter_layer", "layer": "UNDEFINED"}],
            [{"event": "enter_layer", "layer": "SIDEWAYS"}],
            [{"event": "ports", "identifiers": ["a"], "radius": 0}],
            [{"event": "ports", "identifiers": ["a"], "radius": "big"}],
            [{"event": "ports", "identifiers": [], "radius": 1}],
            [{"event": "nodes", "identifiers": "abc"}],
            [{"event": "mixer", "identifier": "m", "params": {"num_turns": 2}}],
            [{"event": "mixer", "identifier": "m", "params": {"num_bends": 2.5}}],
            [{"event": "channel", "identifier": "c", "source": {"identifier": "a"}, "target": {"identifier": "b", "port": 1}}],
            [{"event": "channel", "identifier": "c", "source": {"identifier": "a", "port": True}, "target": {"identifier": "b", "port": 1}}],
            [{"event": "channel", "identifier": "c", "source": {"identifier": "a", "port": 1, "port_position": 7}, "target": {"identifier": "b", "port": 1}}],
            [{"event": "channel", "identifier": "c", "source": {"identifier": "a", "port": 1, "port_position": [8, 3]}, "target": {"identifier": "b", "port": 1}}],
            [{"event": "channel", "identifier": "c", "source": {"identifier": "a", "port": 1, "port_position": {"line": "eight"}}, "target": {"identifier": "b", "port": 1}}],
            ["not an object"],
        ]
        for document in bad_documents:
            with self.subTest(document=document):
                with self.assertRaises(EventStreamError):
                    load_events(document)

    def test_load_event_file_errors(self):
        with tempfile.TemporaryDirectory() as tmp:
            broken = os.path.join(tmp, "broken.json")
            with open(broken, "w", encoding="utf-8") as f:
                f.write("{not json")
            with self.assertRaises(EventStreamError):
                load_event_file(broken)
            with self.assertRaises(EventStreamError):
                load_event_file(os.path.join(tmp, "missing.json"))

    def test_file_name_defaults_to_path(self):
        with tempfile.TemporaryDirectory() as tmp:
            path = os.path.join(tmp, "device.json")
            with open(path, "w", encoding="utf-8") as f:
                json.dump([{"event": "header", "name": "d"}], f)
            self.assertEqual(load_event_file(path).filename, "device.json")

    def test_example_event_file_is_valid(self):
        stream = load_event_file(os.path.join(EXAMPLES_DIR, "cell_sorter.events.json"))
        result = semantic_check(stream)
        self.assertTrue(result.valid, [str(e) for e in result.errors.errors])
        self.assertEqual(result.filename, "cell_sorter.uf")
        self.assertEqual(result.device_name, "cell_sorter")
        self.assertEqual(result.device_graph.edge_count, 5)
        self.assertEqual(len(result.device_graph.vertices(Layer.CONTROL)), 4)


class TestParameters(unittest.TestCase):
    """Test cases for the design parameter file."""

    def test_defaults_without_file(self):
        self.assertEqual(load_parameters(), Parameters())

    def test_parse_key_value_lines(self):
        params = parse_parameters(
            [
                "# comment\n",
                "\n",
                "channelWidth = 120\n",
                "CHANNEL_SPACING = 80  # inline comment\n",
                "port-spacing = 400\n",
                "Max_Device_Width = 50000\n",
            ]
        )
        self.assertEqual(params.channel_width, 120)
        self.assertEqual(params.channel_spacing, 80)
        self.assertEqual(params.port_spacing, 400)
        self.assertEqual(params.max_device_width, 50000)
        self.assertEqual(params.port_radius, Parameters().port_radius)

    def test_unknown_keys_are_ignored(self):
        with self.assertLogs("uf_analyzer.parameters", level="WARNING"):
            params = parse_parameters(["flux_capacitance = 3\n"])
        self.assertEqual(params, Parameters())

    def test_invalid_values(self):
        for line in ["channelWidth = wide", "channelWidth = -5", "channelWidth", "a = b = c", " = 3"]:
            with self.subTest(line=line):
                with self.assertRaises(ParameterError):
                    parse_parameters([line])

    def test_from_mapping(self):
        params = Parameters.from_mapping({"channelWidth": 120, "port_radius": 650})
        self.assertEqual(params.channel_width, 120)
        self.assertEqual(params.port_radius, 650)
        self.assertEqual(Parameters.from_mapping({}), Parameters())

    def test_from_mapping_rejects_bad_values(self):
        bad_mappings = [
            {"channel_width": -5},
            {"channel_width": "wide"},
            {"channel_width": 2.5},
            {"channel_width": True},
            {"flux_capacitance": 3},
        ]
        for values in bad_mappings:
            with self.subTest(values=values):
                with self.assertRaises(ParameterError):
                    Parameters.from_mapping(values)

    def test_load_example_file(self):
        params = load_parameters(os.path.join(EXAMPLES_DIR, "cell_sorter.params"))
        self.assertEqual(params.channel_spacing, 150)
        self.assertEqual(params.to_dict()["port_radius"], 700)

    def test_missing_file(self):
        with self.assertRaises(ParameterError):
            load_parameters("/nonexistent/dir/device.params")


if __name__ == "__main__":
    unittest.main()
