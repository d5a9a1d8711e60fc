"""
Declaration events delivered by the parse-tree traversal.

The traversal walks a UF source file and emits one event per declaration in
source order. Events can also be loaded from a JSON document, which is how
the command line and the HTTP service feed the analyzer.
"""
from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, ClassVar, Dict, List, Mapping, Optional, Sequence, Tuple, Union

from .components import Layer
from .error_types import SourceLocation
from .parameters import normalize_key

logger = logging.getLogger(__name__)

SQUARE_CELL_TRAP = "SQUARE CELL TRAP"
LONG_CELL_TRAP = "LONG CELL TRAP"

CELL_TRAP_PARAMS = (
    "num_chambers",
    "chamber_width",
    "chamber_length",
    "chamber_spacing",
    "channel_width",
)
MIXER_PARAMS = ("num_bends", "bend_spacing", "bend_length", "channel_width")


class EventStreamError(Exception):
    """Raised when an event document cannot be turned into events."""


class EventKind(Enum):
    HEADER = "header"
    ENTER_LAYER = "enter_layer"
    EXIT_LAYER = "exit_layer"
    PORTS = "ports"
    NODES = "nodes"
    CHANNEL = "channel"
    CELL_TRAP = "cell_trap"
    MIXER = "mixer"
    MALFORMED = "malformed"


@dataclass(frozen=True)
class Name:
    """An identifier token with its position in the source."""

    text: str
    location: Optional[SourceLocation] = None

    def __str__(self) -> str:
        return self.text


NameLike = Union[str, Name]


def as_name(value: NameLike) -> Name:
    return value if isinstance(value, Name) else Name(value)


@dataclass(frozen=True)
class Endpoint:
    """One side of a channel: an identifier and a port number on it."""

    identifier: Name
    port: int
    port_location: Optional[SourceLocation] = None

    def __post_init__(self):
        object.__setattr__(self, "identifier", as_name(self.identifier))


@dataclass(frozen=True)
class HeaderEvent:
    name: str
    location: Optional[SourceLocation] = None

    kind: ClassVar[EventKind] = EventKind.HEADER


@dataclass(frozen=True)
class EnterLayerEvent:
    layer: Layer
    location: Optional[SourceLocation] = None

    kind: ClassVar[EventKind] = EventKind.ENTER_LAYER


@dataclass(frozen=True)
class ExitLayerEvent:
    layer: Layer
    location: Optional[SourceLocation] = None

    kind: ClassVar[EventKind] = EventKind.EXIT_LAYER


@dataclass(frozen=True)
class DeclarePortsEvent:
    identifiers: Tuple[Name, ...]
    radius: float
    location: Optional[SourceLocation] = None

    kind: ClassVar[EventKind] = EventKind.PORTS

    def __post_init__(self):
        object.__setattr__(
            self, "identifiers", tuple(as_name(n) for n in self.identifiers)
        )


@dataclass(frozen=True)
class DeclareNodesEvent:
    identifiers: Tuple[Name, ...]
    location: Optional[SourceLocation] = None

    kind: ClassVar[EventKind] = EventKind.NODES

    def __post_init__(self):
        object.__setattr__(
            self, "identifiers", tuple(as_name(n) for n in self.identifiers)
        )


@dataclass(frozen=True)
class DeclareChannelEvent:
    identifier: Name
    source: Endpoint
    target: Endpoint
    location: Optional[SourceLocation] = None

    kind: ClassVar[EventKind] = EventKind.CHANNEL

    def __post_init__(self):
        object.__setattr__(self, "identifier", as_name(self.identifier))


@dataclass(frozen=True)
class DeclareCellTrapEvent:
    type_tag: str
    identifiers: Tuple[Name, ...]
    params: Mapping[str, int] = field(default_factory=dict)
    location: Optional[SourceLocation] = None

    kind: ClassVar[EventKind] = EventKind.CELL_TRAP

    def __post_init__(self):
        object.__setattr__(
            self, "identifiers", tuple(as_name(n) for n in self.identifiers)
        )


@dataclass(frozen=True)
class DeclareMixerEvent:
    identifier: Name
    params: Mapping[str, int] = field(default_factory=dict)
    location: Optional[SourceLocation] = None

    kind: ClassVar[EventKind] = EventKind.MIXER

    def __post_init__(self):
        object.__setattr__(self, "identifier", as_name(self.identifier))


@dataclass(frozen=True)
class MalformedNodeEvent:
    text: Optional[str] = None
    location: Optional[SourceLocation] = None

    kind: ClassVar[EventKind] = EventKind.MALFORMED


DeclarationEvent = Union[
    HeaderEvent,
    EnterLayerEvent,
    ExitLayerEvent,
    DeclarePortsEvent,
    DeclareNodesEvent,
    DeclareChannelEvent,
    DeclareCellTrapEvent,
    DeclareMixerEvent,
    MalformedNodeEvent,
]


# ---------------------------------------------------------------------------
# JSON loading
# ---------------------------------------------------------------------------


@dataclass
class EventStream:
    """Events of one device file, in source order."""

    filename: Optional[str]
    events: List[DeclarationEvent] = field(default_factory=list)

    def __iter__(self):
        return iter(self.events)

    def __len__(self) -> int:
        return len(self.events)


def _require(record: Mapping[str, Any], key: str, index: int) -> Any:
    if key not in record:
        raise EventStreamError(f"Event {index}: missing field '{key}'")
    return record[key]


def _location(record: Any, filename: Optional[str]) -> Optional[SourceLocation]:
    if not isinstance(record, Mapping):
        raise EventStreamError(f"Source position must be an object: {record!r}")
    if "line" not in record:
        return None
    try:
        return SourceLocation(
            int(record["line"]), int(record.get("column", 0)), filename
        )
    except (TypeError, ValueError) as exc:
        raise EventStreamError(f"Invalid source position: {record!r}") from exc


def _name(value: Any, index: int, filename: Optional[str]) -> Name:
    if isinstance(value, str):
        return Name(value)
    if isinstance(value, Mapping) and isinstance(value.get("name"), str):
        return Name(value["name"], _location(value, filename))
    raise EventStreamError(f"Event {index}: invalid identifier {value!r}")


def _names(value: Any, index: int, filename: Optional[str]) -> Tuple[Name, ...]:
    if not isinstance(value, Sequence) or isinstance(value, str) or not value:
        raise EventStreamError(f"Event {index}: 'identifiers' must be a non-empty list")
    return tuple(_name(item, index, filename) for item in value)


def _int(value: Any, what: str, index: int) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise EventStreamError(f"Event {index}: '{what}' must be an integer")
    return value


def _layer(value: Any, index: int) -> Layer:
    try:
        layer = Layer(str(value).upper())
    except ValueError as exc:
        raise EventStreamError(f"Event {index}: unknown layer {value!r}") from exc
    if layer is Layer.UNDEFINED:
        raise EventStreamError(f"Event {index}: layer must be FLOW or CONTROL")
    return layer


def _params(
    value: Any, allowed: Sequence[str], index: int
) -> Dict[str, int]:
    if value is None:
        return {}
    if not isinstance(value, Mapping):
        raise EventStreamError(f"Event {index}: 'params' must be an object")
    params = {}
    for key, param_value in value.items():
        name = normalize_key(str(key))
        if name not in allowed:
            raise EventStreamError(f"Event {index}: unknown parameter '{key}'")
        params[name] = _int(param_value, key, index)
    return params


def _endpoint(value: Any, index: int, filename: Optional[str]) -> Endpoint:
    if not isinstance(value, Mapping):
        raise EventStreamError(f"Event {index}: endpoint must be an object")
    identifier = _name(_require(value, "identifier", index), index, filename)
    if identifier.location is None:
        identifier = Name(identifier.text, _location(value, filename))
    port = _int(_require(value, "port", index), "port", index)
    port_location = _location(value.get("port_position", {}), filename)
    return Endpoint(identifier, port, port_location)


def event_from_dict(
    record: Mapping[str, Any], index: int = 0, filename: Optional[str] = None
) -> DeclarationEvent:
    """Build one declaration event from its JSON form."""
    if not isinstance(record, Mapping):
        raise EventStreamError(f"Event {index}: expected an object")
    raw_kind = _require(record, "event", index)
    try:
        kind = EventKind(raw_kind)
    except ValueError as exc:
        raise EventStreamError(f"Event {index}: unknown event '{raw_kind}'") from exc

    location = _location(record, filename)

    if kind is EventKind.HEADER:
        name = _require(record, "name", index)
        if not isinstance(name, str):
            raise EventStreamError(f"Event {index}: 'name' must be a string")
        return HeaderEvent(name, location)
    if kind is EventKind.ENTER_LAYER:
        return EnterLayerEvent(_layer(_require(record, "layer", index), index), location)
    if kind is EventKind.EXIT_LAYER:
        return ExitLayerEvent(_layer(_require(record, "layer", index), index), location)
    if kind is EventKind.PORTS:
        radius = _require(record, "radius", index)
        if isinstance(radius, bool) or not isinstance(radius, (int, float)):
            raise EventStreamError(f"Event {index}: 'radius' must be a number")
        if radius <= 0:
            raise EventStreamError(f"Event {index}: 'radius' must be positive")
        return DeclarePortsEvent(
            _names(_require(record, "identifiers", index), index, filename),
            float(radius),
            location,
        )
    if kind is EventKind.NODES:
        return DeclareNodesEvent(
            _names(_require(record, "identifiers", index), index, filename), location
        )
    if kind is EventKind.CHANNEL:
        return DeclareChannelEvent(
            _name(_require(record, "identifier", index), index, filename),
            _endpoint(_require(record, "source", index), index, filename),
            _endpoint(_require(record, "target", index), index, filename),
            location,
        )
    if kind is EventKind.CELL_TRAP:
        type_tag = _require(record, "type", index)
        if not isinstance(type_tag, str):
            raise EventStreamError(f"Event {index}: 'type' must be a string")
        return DeclareCellTrapEvent(
            type_tag,
            _names(_require(record, "identifiers", index), index, filename),
            _params(record.get("params"), CELL_TRAP_PARAMS, index),
            location,
        )
    if kind is EventKind.MIXER:
        return DeclareMixerEvent(
            _name(_require(record, "identifier", index), index, filename),
            _params(record.get("params"), MIXER_PARAMS, index),
            location,
        )
    return MalformedNodeEvent(record.get("text"), location)


def load_events(document: Any, filename: Optional[str] = None) -> EventStream:
    """Build an :class:`EventStream` from a decoded JSON document.

    The document is either ``{"filename": ..., "events": [...]}`` or a bare
    list of event objects.
    """
    if isinstance(document, Mapping):
        filename = document.get("filename", filename)
        records = _require(document, "events", 0)
    else:
        records = document
    if not isinstance(records, list):
        raise EventStreamError("'events' must be a list")

    events = [
        event_from_dict(record, index, filename)
        for index, record in enumerate(records)
    ]
    logger.debug("Loaded %d declaration events for %s", len(events), filename)
    return EventStream(filename=filename, events=events)


def load_event_file(path: Union[str, Path]) -> EventStream:
    """Read and decode a JSON event stream from ``path``."""
    path = Path(path)
    try:
        with open(path, "r", encoding="utf-8") as f:
            document = json.load(f)
    except OSError as exc:
        raise EventStreamError(f"Cannot read event file {path}: {exc}") from exc
    except json.JSONDecodeError as exc:
        raise EventStreamError(f"Invalid JSON in {path}: {exc}") from exc
    return load_events(document, filename=path.name)
