"""
Connectivity graph of a device.

Vertices are ``(identifier, port)`` pairs; edges are channels joining two of
them. Both are tagged with the layer of their owning component so later
stages can work on one plane or on the whole device.
"""
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Set, Tuple

from .components import Layer

Vertex = Tuple[str, int]


@dataclass(frozen=True)
class ChannelEdge:
    """Undirected connection between two vertices."""

    source: Vertex
    target: Vertex
    layer: Layer = Layer.UNDEFINED
    channel_id: Optional[str] = None

    def other(self, vertex: Vertex) -> Vertex:
        """Return the endpoint opposite ``vertex``."""
        return self.target if vertex == self.source else self.source

    def to_dict(self) -> Dict[str, Any]:
        return {
            "channel": self.channel_id,
            "layer": self.layer.value,
            "source": {"identifier": self.source[0], "port": self.source[1]},
            "target": {"identifier": self.target[0], "port": self.target[1]},
        }


class DeviceGraph:
    """Per-layer multigraph over component ports."""

    def __init__(self):
        self._vertices: Dict[Vertex, Layer] = {}
        self._edges: List[ChannelEdge] = []
        self._adjacency: Dict[Vertex, List[ChannelEdge]] = {}

    def add_vertex(
        self, identifier: str, port: int, layer: Layer = Layer.UNDEFINED
    ) -> None:
        """Register a vertex. Re-adding an existing vertex is a no-op."""
        vertex = (identifier, port)
        if vertex in self._vertices:
            return
        self._vertices[vertex] = layer
        self._adjacency.setdefault(vertex, [])

    def add_edge(
        self,
        source_id: str,
        source_port: int,
        target_id: str,
        target_port: int,
        layer: Layer = Layer.UNDEFINED,
        channel_id: Optional[str] = None,
    ) -> ChannelEdge:
        """Connect two vertices.

        The endpoints are taken as given; checking that they exist is the
        caller's job.
        """
        edge = ChannelEdge(
            source=(source_id, source_port),
            target=(target_id, target_port),
            layer=layer,
            channel_id=channel_id,
        )
        self._edges.append(edge)
        self._adjacency.setdefault(edge.source, []).append(edge)
        if edge.target != edge.source:
            self._adjacency.setdefault(edge.target, []).append(edge)
        return edge

    def has_vertex(self, identifier: str, port: int) -> bool:
        return (identifier, port) in self._vertices

    def has_edge(
        self, source_id: str, source_port: int, target_id: str, target_port: int
    ) -> bool:
        """Check for an edge between two vertices in either direction."""
        a, b = (source_id, source_port), (target_id, target_port)
        return any(
            {edge.source, edge.target} == {a, b} for edge in self._adjacency.get(a, [])
        )

    def vertex_layer(self, identifier: str, port: int) -> Optional[Layer]:
        return self._vertices.get((identifier, port))

    def vertices(self, layer: Optional[Layer] = None) -> List[Vertex]:
        """Get vertices of one layer, or of the whole device."""
        return [
            vertex
            for vertex, vertex_layer in self._vertices.items()
            if layer is None or vertex_layer == layer
        ]

    def edges(self, layer: Optional[Layer] = None) -> List[ChannelEdge]:
        """Get edges of one layer, or of the whole device."""
        return [edge for edge in self._edges if layer is None or edge.layer == layer]

    def layers(self) -> Set[Layer]:
        """Layers that hold at least one vertex or edge."""
        found = set(self._vertices.values())
        found.update(edge.layer for edge in self._edges)
        return found

    def ports_of(self, identifier: str) -> List[int]:
        return sorted(port for ident, port in self._vertices if ident == identifier)

    def incident_edges(self, identifier: str, port: int) -> List[ChannelEdge]:
        return list(self._adjacency.get((identifier, port), []))

    def neighbors(self, identifier: str, port: int) -> List[Vertex]:
        """Get vertices connected to ``(identifier, port)`` by a channel."""
        vertex = (identifier, port)
        return [edge.other(vertex) for edge in self._adjacency.get(vertex, [])]

    def degree(self, identifier: str, port: int) -> int:
        return len(self._adjacency.get((identifier, port), []))

    def unconnected_vertices(self, layer: Optional[Layer] = None) -> List[Vertex]:
        """Get registered vertices no channel touches."""
        return [
            vertex
            for vertex in self.vertices(layer)
            if not self._adjacency.get(vertex)
        ]

    def dangling_edges(self) -> List[ChannelEdge]:
        """Get edges with at least one endpoint that was never registered."""
        return [
            edge
            for edge in self._edges
            if edge.source not in self._vertices or edge.target not in self._vertices
        ]

    def connected_components(self, layer: Optional[Layer] = None) -> List[Set[Vertex]]:
        """Group vertices joined by channels (ignoring direction)."""
        layer_edges = self.edges(layer)
        adjacency: Dict[Vertex, List[Vertex]] = {v: [] for v in self.vertices(layer)}
        for edge in layer_edges:
            adjacency.setdefault(edge.source, []).append(edge.target)
            adjacency.setdefault(edge.target, []).append(edge.source)

        visited: Set[Vertex] = set()
        groups: List[Set[Vertex]] = []
        for start in adjacency:
            if start in visited:
                continue
            group: Set[Vertex] = set()
            stack = [start]
            while stack:
                vertex = stack.pop()
                if vertex in group:
                    continue
                group.add(vertex)
                stack.extend(n for n in adjacency[vertex] if n not in group)
            visited.update(group)
            groups.append(group)
        return groups

    def layer_view(self, layer: Layer) -> "DeviceGraph":
        """Return a new graph holding only ``layer``'s vertices and edges."""
        view = DeviceGraph()
        for identifier, port in self.vertices(layer):
            view.add_vertex(identifier, port, layer)
        for edge in self.edges(layer):
            view.add_edge(
                edge.source[0],
                edge.source[1],
                edge.target[0],
                edge.target[1],
                layer=edge.layer,
                channel_id=edge.channel_id,
            )
        return view

    @property
    def vertex_count(self) -> int:
        return len(self._vertices)

    @property
    def edge_count(self) -> int:
        return len(self._edges)

    def __len__(self) -> int:
        return len(self._vertices)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "vertices": [
                {"identifier": ident, "port": port, "layer": layer.value}
                for (ident, port), layer in self._vertices.items()
            ],
            "edges": [edge.to_dict() for edge in self._edges],
        }
