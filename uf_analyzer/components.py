"""
Component variants that make up a microfluidic device.

Every variant is a frozen dataclass tagged with a :class:`ComponentKind`.
Which port indices a variant exposes is decided by :func:`has_port`, a plain
table lookup on that tag.
"""
from dataclasses import dataclass, fields
from enum import Enum
from typing import Any, ClassVar, Dict, Union


class Layer(Enum):
    """Logical plane a component belongs to."""

    FLOW = "FLOW"
    CONTROL = "CONTROL"
    UNDEFINED = "UNDEFINED"


class ComponentKind(Enum):
    """Closed set of device element variants."""

    PORT = "Port"
    CHANNEL = "Channel"
    NODE = "Node"
    SQUARE_CELL_TRAP = "SquareCellTrap"
    LONG_CELL_TRAP = "LongCellTrap"
    MIXER = "Mixer"


# Ports are numbered from 1; a channel is a connection and exposes none.
PORT_COUNTS: Dict[ComponentKind, int] = {
    ComponentKind.PORT: 4,
    ComponentKind.CHANNEL: 0,
    ComponentKind.NODE: 4,
    ComponentKind.SQUARE_CELL_TRAP: 4,
    ComponentKind.LONG_CELL_TRAP: 2,
    ComponentKind.MIXER: 2,
}


@dataclass(frozen=True)
class Port:
    """Inlet/outlet punched through the device."""

    identifier: str
    layer: Layer
    radius: float

    kind: ClassVar[ComponentKind] = ComponentKind.PORT

    def __post_init__(self):
        if not self.radius > 0:
            raise ValueError(f"Port '{self.identifier}': radius must be positive")

    def has_port(self, index: int) -> bool:
        return has_port(self, index)

    def to_dict(self) -> Dict[str, Any]:
        return _component_to_dict(self)


@dataclass(frozen=True)
class Channel:
    """Named connection between two component ports."""

    identifier: str
    layer: Layer

    kind: ClassVar[ComponentKind] = ComponentKind.CHANNEL

    def has_port(self, index: int) -> bool:
        return has_port(self, index)

    def to_dict(self) -> Dict[str, Any]:
        return _component_to_dict(self)


@dataclass(frozen=True)
class Node:
    """Junction joining up to four channels."""

    identifier: str
    layer: Layer

    kind: ClassVar[ComponentKind] = ComponentKind.NODE

    def has_port(self, index: int) -> bool:
        return has_port(self, index)

    def to_dict(self) -> Dict[str, Any]:
        return _component_to_dict(self)


@dataclass(frozen=True)
class SquareCellTrap:
    identifier: str
    layer: Layer
    chamber_width: int = 0
    chamber_length: int = 0
    channel_width: int = 0

    kind: ClassVar[ComponentKind] = ComponentKind.SQUARE_CELL_TRAP

    def has_port(self, index: int) -> bool:
        return has_port(self, index)

    def to_dict(self) -> Dict[str, Any]:
        return _component_to_dict(self)


@dataclass(frozen=True)
class LongCellTrap:
    identifier: str
    layer: Layer
    num_chambers: int = 0
    chamber_width: int = 0
    chamber_length: int = 0
    chamber_spacing: int = 0
    channel_width: int = 0

    kind: ClassVar[ComponentKind] = ComponentKind.LONG_CELL_TRAP

    def has_port(self, index: int) -> bool:
        return has_port(self, index)

    def to_dict(self) -> Dict[str, Any]:
        return _component_to_dict(self)


@dataclass(frozen=True)
class Mixer:
    """Serpentine mixer, one inlet and one outlet."""

    identifier: str
    layer: Layer
    num_bends: int = 0
    bend_spacing: int = 0
    bend_length: int = 0
    channel_width: int = 0

    kind: ClassVar[ComponentKind] = ComponentKind.MIXER

    def has_port(self, index: int) -> bool:
        return has_port(self, index)

    def to_dict(self) -> Dict[str, Any]:
        return _component_to_dict(self)


Component = Union[Port, Channel, Node, SquareCellTrap, LongCellTrap, Mixer]


def port_indices(component: Union[Component, ComponentKind]) -> range:
    """Return the capability set (valid port indices) of a component or kind."""
    kind = component if isinstance(component, ComponentKind) else component.kind
    return range(1, PORT_COUNTS[kind] + 1)


def has_port(component: Union[Component, ComponentKind], index: int) -> bool:
    """True iff ``index`` is a port the component's variant exposes."""
    return index in port_indices(component)


def _component_to_dict(component: Component) -> Dict[str, Any]:
    data: Dict[str, Any] = {"kind": component.kind.value}
    for f in fields(component):
        value = getattr(component, f.name)
        data[f.name] = value.value if isinstance(value, Layer) else value
    return data
