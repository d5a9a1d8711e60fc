"""
Symbol table: the single namespace of component identifiers in a device.
"""
from typing import Any, Dict, Iterator, List, Optional, Tuple

from .components import Component, ComponentKind, Layer


class SymbolTable:
    """Append-only mapping from identifier to component.

    The first component stored under a name wins; later attempts are refused
    by :meth:`put` and leave the table untouched.
    """

    def __init__(self):
        self._symbols: Dict[str, Component] = {}

    def put(self, identifier: str, component: Component) -> bool:
        """Insert ``component`` unless ``identifier`` is already taken."""
        if identifier in self._symbols:
            return False
        self._symbols[identifier] = component
        return True

    def contains_key(self, identifier: str) -> bool:
        return identifier in self._symbols

    def get(self, identifier: str) -> Component:
        """Return the component for ``identifier``.

        Callers must check :meth:`contains_key` first; an unknown identifier
        raises ``KeyError``.
        """
        return self._symbols[identifier]

    def items(self) -> List[Tuple[str, Component]]:
        return list(self._symbols.items())

    def components(
        self, kind: Optional[ComponentKind] = None, layer: Optional[Layer] = None
    ) -> List[Component]:
        """Get registered components, optionally filtered by kind and layer."""
        return [
            component
            for component in self._symbols.values()
            if (kind is None or component.kind == kind)
            and (layer is None or component.layer == layer)
        ]

    def __contains__(self, identifier: object) -> bool:
        return identifier in self._symbols

    def __len__(self) -> int:
        return len(self._symbols)

    def __iter__(self) -> Iterator[str]:
        return iter(self._symbols)

    def to_dict(self) -> Dict[str, Any]:
        return {
            identifier: component.to_dict()
            for identifier, component in self._symbols.items()
        }
