"""
UF Device Analyzer - Main Package

This package turns the declarations of a UF microfluidic device description
into a validated device model: a symbol table of named components and a
multi-layer connectivity graph over their ports.
"""

from .analyzer import AnalysisResult, SemanticAnalyzer, semantic_check
from .components import (
    Channel,
    Component,
    ComponentKind,
    Layer,
    LongCellTrap,
    Mixer,
    Node,
    Port,
    SquareCellTrap,
    has_port,
    port_indices,
)
from .device_graph import ChannelEdge, DeviceGraph
from .error_types import (
    ErrorCollector,
    ErrorSeverity,
    ErrorType,
    MalformedInputError,
    SemanticError,
    SourceLocation,
)
from .events import (
    DeclareCellTrapEvent,
    DeclareChannelEvent,
    DeclareMixerEvent,
    DeclareNodesEvent,
    DeclarePortsEvent,
    EnterLayerEvent,
    Endpoint,
    EventStream,
    EventStreamError,
    ExitLayerEvent,
    HeaderEvent,
    MalformedNodeEvent,
    Name,
    load_event_file,
    load_events,
)
from .parameters import ParameterError, Parameters, load_parameters
from .symbol_table import SymbolTable

__version__ = "0.1.0"

__all__ = [
    # Error handling
    "ErrorSeverity",
    "ErrorType",
    "SourceLocation",
    "SemanticError",
    "ErrorCollector",
    "MalformedInputError",
    # Device model
    "Layer",
    "ComponentKind",
    "Component",
    "Port",
    "Channel",
    "Node",
    "SquareCellTrap",
    "LongCellTrap",
    "Mixer",
    "has_port",
    "port_indices",
    "SymbolTable",
    "ChannelEdge",
    "DeviceGraph",
    # Declaration events
    "Name",
    "Endpoint",
    "HeaderEvent",
    "EnterLayerEvent",
    "ExitLayerEvent",
    "DeclarePortsEvent",
    "DeclareNodesEvent",
    "DeclareChannelEvent",
    "DeclareCellTrapEvent",
    "DeclareMixerEvent",
    "MalformedNodeEvent",
    "EventStream",
    "EventStreamError",
    "load_events",
    "load_event_file",
    # Configuration
    "Parameters",
    "ParameterError",
    "load_parameters",
    # Main analyzer
    "AnalysisResult",
    "SemanticAnalyzer",
    "semantic_check",
]
