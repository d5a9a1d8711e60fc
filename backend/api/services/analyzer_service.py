from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from uf_analyzer import (
    EventStreamError,
    Parameters,
    SemanticAnalyzer,
    load_events,
)

logger = logging.getLogger(__name__)


class AnalyzerService:
    """Service for analyzing UF declaration events in API context."""

    @staticmethod
    def analyze_events(
        events: List[Dict[str, Any]],
        filename: Optional[str] = None,
        parameters: Optional[Dict[str, int]] = None,
        drop_invalid_edges: bool = False,
        register_duplicate_vertices: bool = True,
    ) -> Dict[str, Any]:
        """Run the analyzer over serialized events and return a JSON-ready result.

        Raises:
            EventStreamError: If the events cannot be loaded.
            ParameterError: If ``parameters`` holds unknown keys or bad values.
        """
        stream = load_events(events, filename=filename)
        analyzer = SemanticAnalyzer(
            filename=stream.filename,
            parameters=Parameters.from_mapping(parameters or {}, source="request"),
            drop_invalid_edges=drop_invalid_edges,
            register_duplicate_vertices=register_duplicate_vertices,
        )
        result = analyzer.analyze(stream)
        logger.info(
            "Analyzed %s: valid=%s aborted=%s errors=%d",
            stream.filename,
            result.valid,
            result.aborted,
            len(result.errors),
        )

        data = result.to_dict()
        return {
            "success": result.valid and not result.aborted,
            "device_name": data["device_name"],
            "valid": data["valid"],
            "aborted": data["aborted"],
            "symbol_table": data["symbol_table"],
            "device_graph": data["device_graph"],
            "diagnostics": [error.to_dict() for error in result.errors.errors],
            "summary": analyzer.get_analysis_summary(),
        }

    @staticmethod
    def validate_events(events: List[Dict[str, Any]]) -> Optional[str]:
        """Return the loader error message for ``events``, or None if they load."""
        try:
            load_events(events)
        except EventStreamError as exc:
            return str(exc)
        return None
