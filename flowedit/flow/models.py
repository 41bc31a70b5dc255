"""
Flow Graph Data Model.

The canonical flow document (what gets exported as JSON) and the positioned
graph (what the editor canvas works on). These are plain data shapes; the
converter and validator modules hold all of the behaviour.
"""

from typing import Any, Dict, List, Optional
from dataclasses import dataclass, field
from enum import Enum


# Display label for edges that have no condition yet
EDGE_LABEL_PLACEHOLDER = "Click to edit condition"


class ErrorCategory(str, Enum):
    """Kinds of validation findings."""
    INTEGRITY = "integrity"          # Duplicate ids, dangling targets, bad start node
    COMPLETENESS = "completeness"    # Empty description / prompt / condition
    CONNECTIVITY = "connectivity"    # Disconnected or unreachable nodes


# ============================================================
# Flow Document (wire format)
# ============================================================

@dataclass
class Edge:
    """
    An outgoing transition owned by its source node.

    Attributes:
        to_node_id: Target node id (may dangle)
        condition: Guard text deciding when the transition is taken
        parameters: Optional string key/value parameters
    """

    to_node_id: str
    condition: str = ""
    parameters: Optional[Dict[str, str]] = None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "to_node_id": self.to_node_id,
            "condition": self.condition,
        }
        if self.parameters is not None:
            data["parameters"] = dict(self.parameters)
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Edge":
        parameters = data.get("parameters")
        return cls(
            to_node_id=data["to_node_id"],
            condition=data.get("condition", ""),
            parameters=dict(parameters) if parameters is not None else None,
        )


@dataclass
class Node:
    """
    A dialogue state in the flow.

    Attributes:
        id: Node identifier, intended to be unique in its document
        prompt: What the bot says in this state
        description: Optional free text describing the state
        edges: Outgoing edges, in order
    """

    id: str
    prompt: str = ""
    description: Optional[str] = None
    edges: List[Edge] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "description": self.description or "",
            "prompt": self.prompt,
            "edges": [edge.to_dict() for edge in self.edges],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Node":
        return cls(
            id=data["id"],
            prompt=data.get("prompt", ""),
            description=data.get("description"),
            edges=[Edge.from_dict(e) for e in data.get("edges", [])],
        )


@dataclass
class FlowDocument:
    """
    The canonical, serializable flow definition.

    Nothing here is checked at construction time: an empty start node,
    duplicate ids or dangling edges are reported by the validator instead.
    """

    start_node_id: str = ""
    nodes: List[Node] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to the snake_case JSON document shape."""
        return {
            "start_node_id": self.start_node_id,
            "nodes": [node.to_dict() for node in self.nodes],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "FlowDocument":
        """Build a document from already-parsed JSON data."""
        return cls(
            start_node_id=data.get("start_node_id") or "",
            nodes=[Node.from_dict(n) for n in data.get("nodes", [])],
        )

    def node_ids(self) -> List[str]:
        return [node.id for node in self.nodes]

    def get_node(self, node_id: str) -> Optional[Node]:
        """First node with the given id, if any."""
        for node in self.nodes:
            if node.id == node_id:
                return node
        return None


# ============================================================
# Positioned Graph (editor projection)
# ============================================================

@dataclass
class Position:
    """2-D canvas coordinate."""
    x: float = 0.0
    y: float = 0.0

    def to_dict(self) -> Dict[str, float]:
        return {"x": self.x, "y": self.y}


@dataclass
class PositionedNode:
    """
    A node placed on the canvas.

    ``edges`` is whatever was carried along from the last import. It is a
    cache only; adjacency is always read from the graph's edge list.
    """

    id: str
    position: Position = field(default_factory=Position)
    description: Optional[str] = None
    prompt: str = ""
    edges: List[Edge] = field(default_factory=list)

    @property
    def label(self) -> str:
        return self.id


@dataclass
class PositionedEdge:
    """
    An edge on the canvas.

    ``condition`` is None when no condition data exists at all, which is
    different from an explicitly empty condition. ``label`` is only read
    when ``condition`` is None, for edges that arrive with nothing but a
    canvas label.
    """

    id: str
    source: str
    target: str
    condition: Optional[str] = None
    parameters: Optional[Dict[str, str]] = None
    label: Optional[str] = None

    @property
    def resolved_condition(self) -> str:
        """
        The condition written to the document.

        Explicit condition data wins, even when empty. Only when it is
        absent does the canvas label stand in for it.
        """
        if self.condition is not None:
            return self.condition
        if self.label and self.label != EDGE_LABEL_PLACEHOLDER:
            return self.label
        return ""

    @property
    def display_label(self) -> str:
        """Label shown on the canvas: the resolved condition or the placeholder."""
        return self.resolved_condition or EDGE_LABEL_PLACEHOLDER


@dataclass
class PositionedGraph:
    """The editable projection: positioned nodes plus the authoritative edge list."""

    nodes: List[PositionedNode] = field(default_factory=list)
    edges: List[PositionedEdge] = field(default_factory=list)

    def node_ids(self) -> List[str]:
        return [node.id for node in self.nodes]

    def get_node(self, node_id: str) -> Optional[PositionedNode]:
        for node in self.nodes:
            if node.id == node_id:
                return node
        return None

    def get_edge(self, edge_id: str) -> Optional[PositionedEdge]:
        for edge in self.edges:
            if edge.id == edge_id:
                return edge
        return None

    def outgoing_edges(self, node_id: str) -> List[PositionedEdge]:
        """Edges whose source is ``node_id``, in edge-list order."""
        return [edge for edge in self.edges if edge.source == node_id]


# ============================================================
# Validation
# ============================================================

@dataclass(frozen=True)
class ValidationError:
    """
    A single validation finding.

    ``field`` is a loose, substring-filterable tag such as
    ``node_greet_edge_0_condition``; it is not a formal path syntax.
    """

    field: str
    message: str
    category: ErrorCategory = ErrorCategory.INTEGRITY

    def to_dict(self) -> Dict[str, str]:
        return {
            "field": self.field,
            "message": self.message,
            "category": self.category.value,
        }
