"""
Flow package - Flow graph model, converter, validator and editor operations.
"""

from flowedit.flow.models import (
    EDGE_LABEL_PLACEHOLDER,
    Edge,
    ErrorCategory,
    FlowDocument,
    Node,
    Position,
    PositionedEdge,
    PositionedGraph,
    PositionedNode,
    ValidationError,
)
from flowedit.flow.converter import (
    Projection,
    project_to_document,
    project_to_positioned_graph,
)
from flowedit.flow.validator import validate_flow, filter_errors, is_valid
from flowedit.flow.editor import (
    EditorState,
    FlowEditError,
    NodeNotFoundError,
    EdgeNotFoundError,
    DuplicateNodeIdError,
)

__all__ = [
    "EDGE_LABEL_PLACEHOLDER",
    "Edge",
    "ErrorCategory",
    "FlowDocument",
    "Node",
    "Position",
    "PositionedEdge",
    "PositionedGraph",
    "PositionedNode",
    "ValidationError",
    "Projection",
    "project_to_document",
    "project_to_positioned_graph",
    "validate_flow",
    "filter_errors",
    "is_valid",
    "EditorState",
    "FlowEditError",
    "NodeNotFoundError",
    "EdgeNotFoundError",
    "DuplicateNodeIdError",
]
