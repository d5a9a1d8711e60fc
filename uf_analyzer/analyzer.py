"""
Semantic analyzer that builds a device model from UF declaration events.
"""
import logging
from dataclasses import dataclass
from typing import Any, Dict, Iterable, Mapping, Optional, Sequence, Tuple, Union

from .components import (
    Channel,
    Component,
    Layer,
    LongCellTrap,
    Mixer,
    Node,
    Port,
    SquareCellTrap,
    has_port,
    port_indices,
)
from .device_graph import DeviceGraph
from .error_types import (
    ErrorCollector,
    ErrorType,
    MalformedInputError,
    SourceLocation,
)
from .events import (
    CELL_TRAP_PARAMS,
    MIXER_PARAMS,
    SQUARE_CELL_TRAP,
    DeclarationEvent,
    Endpoint,
    EventKind,
    EventStream,
    Name,
    NameLike,
    as_name,
)
from .parameters import Parameters, normalize_key
from .symbol_table import SymbolTable

logger = logging.getLogger(__name__)

EndpointLike = Union[Endpoint, Tuple[NameLike, int]]


@dataclass
class AnalysisResult:
    """Outcome of analyzing one device file.

    An aborted run carries no model: ``symbol_table`` and ``device_graph``
    are None. A completed run always carries both, but only a ``valid`` one
    may be trusted by later stages.
    """

    filename: Optional[str]
    device_name: Optional[str]
    valid: bool
    aborted: bool
    symbol_table: Optional[SymbolTable]
    device_graph: Optional[DeviceGraph]
    errors: ErrorCollector
    parameters: Parameters

    def to_dict(self) -> Dict[str, Any]:
        return {
            "filename": self.filename,
            "device_name": self.device_name,
            "valid": self.valid,
            "aborted": self.aborted,
            "symbol_table": self.symbol_table.to_dict() if self.symbol_table else None,
            "device_graph": self.device_graph.to_dict() if self.device_graph else None,
            "diagnostics": self.errors.to_dict(),
            "parameters": self.parameters.to_dict(),
        }


def _as_endpoint(endpoint: EndpointLike) -> Endpoint:
    if isinstance(endpoint, Endpoint):
        return endpoint
    identifier, port = endpoint
    return Endpoint(as_name(identifier), port)


def _geometry(
    params: Optional[Mapping[str, int]], allowed: Sequence[str], owner: str
) -> Dict[str, int]:
    """Normalize geometry parameter names; missing ones default to 0."""
    geometry = dict.fromkeys(allowed, 0)
    for key, value in (params or {}).items():
        name = normalize_key(str(key))
        if name not in geometry:
            raise ValueError(f"Unknown parameter '{key}' for {owner}")
        geometry[name] = int(value)
    return geometry


class SemanticAnalyzer:
    """Builds and validates the symbol table and device graph of one device.

    Declarations are handled one at a time, in source order, and resolved
    immediately. Duplicated identifiers, undefined identifiers and undefined
    ports are reported to the error collector and clear the validity flag,
    which never becomes true again; analysis carries on so that one run
    reports every such error. A malformed node aborts the run.
    """

    def __init__(
        self,
        filename: Optional[str] = None,
        parameters: Optional[Parameters] = None,
        error_collector: Optional[ErrorCollector] = None,
        drop_invalid_edges: bool = False,
        register_duplicate_vertices: bool = True,
    ):
        self.filename = filename
        self.parameters = parameters if parameters is not None else Parameters()
        self.error_collector = (
            error_collector if error_collector is not None else ErrorCollector()
        )
        self.symbol_table = SymbolTable()
        self.device_graph = DeviceGraph()
        self.drop_invalid_edges = drop_invalid_edges
        self.register_duplicate_vertices = register_duplicate_vertices

        self._valid = True
        self._aborted = False
        self._device_name: Optional[str] = None
        self._current_layer = Layer.UNDEFINED

        self._handlers = {
            EventKind.HEADER: lambda e: self.on_header(e.name),
            EventKind.ENTER_LAYER: lambda e: self.on_enter_layer(e.layer),
            EventKind.EXIT_LAYER: lambda e: self.on_exit_layer(e.layer),
            EventKind.PORTS: lambda e: self.on_declare_ports(e.identifiers, e.radius),
            EventKind.NODES: lambda e: self.on_declare_nodes(e.identifiers),
            EventKind.CHANNEL: lambda e: self.on_declare_channel(
                e.identifier, e.source, e.target
            ),
            EventKind.CELL_TRAP: lambda e: self.on_declare_cell_trap(
                e.type_tag, e.identifiers, e.params
            ),
            EventKind.MIXER: lambda e: self.on_declare_mixer(e.identifier, e.params),
            EventKind.MALFORMED: lambda e: self.on_malformed_node(e.location, e.text),
        }

    @property
    def valid(self) -> bool:
        return self._valid

    @property
    def aborted(self) -> bool:
        return self._aborted

    @property
    def device_name(self) -> Optional[str]:
        return self._device_name

    @property
    def current_layer(self) -> Layer:
        return self._current_layer

    # ------------------------------------------------------------------
    # Event dispatch
    # ------------------------------------------------------------------

    def handle(self, event: DeclarationEvent) -> None:
        """Process a single declaration event.

        Raises :class:`MalformedInputError` for a malformed node. Once the
        run has been aborted, further events are ignored.
        """
        if self._aborted:
            logger.debug("Run aborted, ignoring %s event", event.kind.value)
            return
        self._handlers[event.kind](event)

    def analyze(self, events: Iterable[DeclarationEvent]) -> AnalysisResult:
        """Process a whole event stream and return the result."""
        if isinstance(events, EventStream) and self.filename is None:
            self.filename = events.filename

        try:
            for event in events:
                self.handle(event)
        except MalformedInputError as exc:
            logger.debug("Analysis of %s aborted: %s", self.filename, exc)

        return self.result()

    def result(self) -> AnalysisResult:
        return AnalysisResult(
            filename=self.filename,
            device_name=self._device_name,
            valid=self._valid,
            aborted=self._aborted,
            symbol_table=None if self._aborted else self.symbol_table,
            device_graph=None if self._aborted else self.device_graph,
            errors=self.error_collector,
            parameters=self.parameters,
        )

    # ------------------------------------------------------------------
    # Declaration handlers
    # ------------------------------------------------------------------

    def on_header(self, name: str) -> None:
        self._device_name = name
        logger.debug("Device name: %s", name)

    def on_enter_layer(self, layer: Union[Layer, str]) -> None:
        if not isinstance(layer, Layer):
            layer = Layer(layer.upper())
        self._current_layer = layer
        logger.debug("Entering %s layer", self._current_layer.value)

    def on_exit_layer(self, layer: Union[Layer, str, None] = None) -> None:
        logger.debug("Leaving %s layer", self._current_layer.value)
        self._current_layer = Layer.UNDEFINED

    def on_declare_ports(self, identifiers: Sequence[NameLike], radius: float) -> None:
        """Declare ports; raises ValueError unless ``radius`` is positive."""
        for identifier in identifiers:
            name = as_name(identifier)
            self._register(name, Port(name.text, self._current_layer, radius))

    def on_declare_nodes(self, identifiers: Sequence[NameLike]) -> None:
        for identifier in identifiers:
            name = as_name(identifier)
            self._register(name, Node(name.text, self._current_layer))

    def on_declare_cell_trap(
        self,
        type_tag: str,
        identifiers: Sequence[NameLike],
        params: Optional[Mapping[str, int]] = None,
    ) -> None:
        """Declare cell traps; unspecified parameters are 0.

        Only the ``SQUARE CELL TRAP`` tag yields square traps, every other
        tag yields long ones. Parameter names may be given in camelCase
        (``numChambers``) or snake_case.

        Raises:
            ValueError: If ``params`` names an unknown parameter.
        """
        geometry = _geometry(params, CELL_TRAP_PARAMS, type_tag)
        for identifier in identifiers:
            name = as_name(identifier)
            if type_tag == SQUARE_CELL_TRAP:
                trap: Component = SquareCellTrap(
                    name.text,
                    self._current_layer,
                    chamber_width=geometry["chamber_width"],
                    chamber_length=geometry["chamber_length"],
                    channel_width=geometry["channel_width"],
                )
            else:
                trap = LongCellTrap(name.text, self._current_layer, **geometry)
            self._register(name, trap)

    def on_declare_mixer(
        self, identifier: NameLike, params: Optional[Mapping[str, int]] = None
    ) -> None:
        name = as_name(identifier)
        geometry = _geometry(params, MIXER_PARAMS, "mixer")
        self._register(name, Mixer(name.text, self._current_layer, **geometry))

    def on_declare_channel(
        self, channel_id: NameLike, source: EndpointLike, target: EndpointLike
    ) -> None:
        """Validate both endpoints, register the channel, add its edge."""
        name = as_name(channel_id)
        source, target = _as_endpoint(source), _as_endpoint(target)

        endpoints_ok = True
        for endpoint in (source, target):
            endpoints_ok = self._check_endpoint(endpoint) and endpoints_ok

        channel = Channel(name.text, self._current_layer)
        self._register(name, channel)

        if not endpoints_ok and self.drop_invalid_edges:
            logger.debug("Channel '%s' has invalid endpoints, no edge added", name)
            return
        self.device_graph.add_edge(
            source.identifier.text,
            source.port,
            target.identifier.text,
            target.port,
            layer=self._current_layer,
            channel_id=name.text,
        )

    def on_malformed_node(
        self, location: Optional[SourceLocation] = None, text: Optional[str] = None
    ) -> None:
        """Abort the run: the traversal hit a node it could not parse."""
        self._valid = False
        self._aborted = True
        context = {"text": text} if text is not None else None
        self.error_collector.report(
            self.filename, location, ErrorType.MALFORMED_INPUT, context=context
        )
        raise MalformedInputError(location=location)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _register(self, name: Name, component: Component) -> None:
        registered = self.symbol_table.put(name.text, component)
        if registered:
            logger.debug(
                "Declared %s '%s' on %s layer",
                component.kind.value,
                name.text,
                component.layer.value,
            )
        else:
            self._report(ErrorType.DUPLICATED_IDENTIFIER, name.location, name.text)

        if registered or self.register_duplicate_vertices:
            for port in port_indices(component):
                self.device_graph.add_vertex(name.text, port, component.layer)

    def _check_endpoint(self, endpoint: Endpoint) -> bool:
        identifier = endpoint.identifier
        if not self.symbol_table.contains_key(identifier.text):
            self._report(
                ErrorType.UNDEFINED_IDENTIFIER, identifier.location, identifier.text
            )
            return False

        component = self.symbol_table.get(identifier.text)
        if not has_port(component, endpoint.port):
            self._report(
                ErrorType.UNDEFINED_PORT,
                endpoint.port_location or identifier.location,
                identifier.text,
                context={"port": endpoint.port, "kind": component.kind.value},
            )
            return False
        return True

    def _report(
        self,
        error_type: ErrorType,
        location: Optional[SourceLocation],
        identifier: Optional[str],
        context: Optional[Dict[str, Any]] = None,
    ) -> None:
        error = self.error_collector.report(
            self.filename, location, error_type, identifier=identifier, context=context
        )
        self._valid = False
        logger.debug("%s", error)

    # ------------------------------------------------------------------
    # Reporting
    # ------------------------------------------------------------------

    def get_analysis_summary(self) -> Dict[str, Any]:
        """Get a summary of the analysis results."""
        components: Dict[str, int] = {}
        for _, component in self.symbol_table.items():
            kind = component.kind.value
            components[kind] = components.get(kind, 0) + 1

        return {
            "device_name": self._device_name,
            "valid": self._valid,
            "aborted": self._aborted,
            "components": components,
            "vertices": {
                layer.value: len(self.device_graph.vertices(layer)) for layer in Layer
            },
            "edges": {
                layer.value: len(self.device_graph.edges(layer)) for layer in Layer
            },
            "errors_by_type": self._group_errors_by_type(),
        }

    def _group_errors_by_type(self) -> Dict[str, int]:
        """Group errors by type for summary."""
        error_types: Dict[str, int] = {}
        for error in self.error_collector.errors:
            error_type = error.error_type.value
            error_types[error_type] = error_types.get(error_type, 0) + 1
        return error_types


def semantic_check(
    events: Iterable[DeclarationEvent],
    filename: Optional[str] = None,
    parameters: Optional[Parameters] = None,
    **options: bool,
) -> AnalysisResult:
    """Convenience function to analyze a whole event stream."""
    analyzer = SemanticAnalyzer(filename=filename, parameters=parameters, **options)
    return analyzer.analyze(events)
