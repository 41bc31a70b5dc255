"""
Pydantic Schemas for API Request/Response Models.

These schemas are the boundary of the service: incoming JSON is parsed and
type-checked here, so malformed payloads are rejected with a 422 before
they ever reach the flow converter or validator.
"""

from typing import Any, Dict, List, Optional
from pydantic import BaseModel, Field

from flowedit.flow.converter import edge_condition
from flowedit.flow.models import (
    FlowDocument,
    Position,
    PositionedEdge,
    PositionedGraph,
    PositionedNode,
    ValidationError,
)


# ============================================================
# Flow Document Schemas (wire format)
# ============================================================

class EdgeSchema(BaseModel):
    """An outgoing edge in the flow document."""
    to_node_id: str = Field(..., description="Target node id")
    condition: str = Field("", description="Guard deciding when the transition is taken")
    parameters: Optional[Dict[str, str]] = Field(None, description="Optional string parameters")


class NodeSchema(BaseModel):
    """A node in the flow document."""
    id: str = Field(..., description="Node id, unique within the flow")
    description: Optional[str] = Field(None, description="What this dialogue state is for")
    prompt: str = Field("", description="What the bot says in this state")
    edges: List[EdgeSchema] = Field(default_factory=list, description="Outgoing edges")


class FlowDocumentSchema(BaseModel):
    """The flow document as exported and imported as JSON."""
    start_node_id: Optional[str] = Field("", description="Id of the start node")
    nodes: List[NodeSchema] = Field(default_factory=list)

    class Config:
        json_schema_extra = {
            "example": {
                "start_node_id": "greeting",
                "nodes": [
                    {
                        "id": "greeting",
                        "description": "Welcome the caller",
                        "prompt": "Hi! How can I help you today?",
                        "edges": [
                            {
                                "to_node_id": "goodbye",
                                "condition": "user is done",
                                "parameters": {"reason": "complete"}
                            }
                        ]
                    },
                    {
                        "id": "goodbye",
                        "description": "End the conversation",
                        "prompt": "Thanks for calling, goodbye!",
                        "edges": []
                    }
                ]
            }
        }

    def to_document(self) -> FlowDocument:
        return FlowDocument.from_dict(self.model_dump())


# ============================================================
# Positioned Graph Schemas
# ============================================================

class PositionSchema(BaseModel):
    x: float = 0.0
    y: float = 0.0


class PositionedNodeSchema(BaseModel):
    """A node as placed on the editor canvas."""
    id: str
    position: PositionSchema = Field(default_factory=PositionSchema)
    label: Optional[str] = Field(None, description="Display label (mirrors id)")
    description: Optional[str] = None
    prompt: str = ""
    edges: List[EdgeSchema] = Field(
        default_factory=list,
        description="Outgoing edges; informational only, the edge list is authoritative",
    )

    def to_node(self) -> PositionedNode:
        return PositionedNode(
            id=self.id,
            position=Position(x=self.position.x, y=self.position.y),
            description=self.description,
            prompt=self.prompt,
            edges=[],
        )


class PositionedEdgeSchema(BaseModel):
    """An edge as drawn on the editor canvas."""
    id: str
    source: str
    target: str
    label: Optional[str] = Field(None, description="Display label; used as condition only if condition is absent")
    condition: Optional[str] = None
    parameters: Optional[Dict[str, str]] = None

    def to_edge(self) -> PositionedEdge:
        return PositionedEdge(
            id=self.id,
            source=self.source,
            target=self.target,
            condition=self.condition,
            parameters=self.parameters,
            label=self.label,
        )


def node_to_schema(node: PositionedNode, graph: PositionedGraph) -> PositionedNodeSchema:
    """Render a node, deriving its edges from the graph's edge list."""
    return PositionedNodeSchema(
        id=node.id,
        position=PositionSchema(x=node.position.x, y=node.position.y),
        label=node.label,
        description=node.description,
        prompt=node.prompt,
        edges=[
            EdgeSchema(
                to_node_id=edge.target,
                condition=edge_condition(edge),
                parameters=edge.parameters,
            )
            for edge in graph.outgoing_edges(node.id)
        ],
    )


def edge_to_schema(edge: PositionedEdge) -> PositionedEdgeSchema:
    return PositionedEdgeSchema(
        id=edge.id,
        source=edge.source,
        target=edge.target,
        label=edge.display_label,
        condition=edge.condition,
        parameters=edge.parameters,
    )


# ============================================================
# Validation Schemas
# ============================================================

class ValidationErrorSchema(BaseModel):
    """A single validation finding."""
    field: str = Field(..., description="Filterable tag, e.g. node_greeting_edge_0_condition")
    message: str
    category: str = Field(..., description="integrity, completeness or connectivity")

    @classmethod
    def from_error(cls, error: ValidationError) -> "ValidationErrorSchema":
        return cls(**error.to_dict())


class ValidateResponse(BaseModel):
    """Result of validating a flow document."""
    valid: bool
    errors: List[ValidationErrorSchema]


# ============================================================
# Conversion Schemas
# ============================================================

class ImportResponse(BaseModel):
    """A flow document projected onto the canvas."""
    nodes: List[PositionedNodeSchema]
    edges: List[PositionedEdgeSchema]
    start_node_id: Optional[str]


class ExportRequest(BaseModel):
    """Canvas state to flatten into a flow document."""
    nodes: List[PositionedNodeSchema] = Field(default_factory=list)
    edges: List[PositionedEdgeSchema] = Field(default_factory=list)
    start_node_id: Optional[str] = None

    def to_graph(self) -> PositionedGraph:
        return PositionedGraph(
            nodes=[node.to_node() for node in self.nodes],
            edges=[edge.to_edge() for edge in self.edges],
        )


class ExportResponse(BaseModel):
    """Flattened flow document plus its validation result."""
    document: Dict[str, Any]
    valid: bool
    errors: List[ValidationErrorSchema]


# ============================================================
# Session Schemas
# ============================================================

class SessionCreateRequest(BaseModel):
    """Request to open a new editing session."""
    name: str = Field("Untitled Flow", description="Name of the flow")
    document: Optional[FlowDocumentSchema] = Field(None, description="Flow to import (empty flow if omitted)")


class SessionResponse(BaseModel):
    """Full view of an editing session, recomputed on every read."""
    session_id: str
    name: str
    start_node_id: Optional[str]
    selected_node_id: Optional[str]
    selected_edge_id: Optional[str]
    nodes: List[PositionedNodeSchema]
    edges: List[PositionedEdgeSchema]
    document: Dict[str, Any]
    valid: bool
    errors: List[ValidationErrorSchema]
    created_at: str
    updated_at: str


class SessionSummary(BaseModel):
    """Short description of a session for listings."""
    session_id: str
    name: str
    node_count: int
    edge_count: int
    start_node_id: Optional[str]
    valid: bool
    error_count: int
    created_at: str
    updated_at: str


class SessionListResponse(BaseModel):
    sessions: List[SessionSummary]
    total: int


class NodeCreateRequest(BaseModel):
    """Request to add a node."""
    id: Optional[str] = Field(None, description="Node id (generated if omitted)")
    position: Optional[PositionSchema] = None
    description: str = ""
    prompt: str = ""


class NodeUpdateRequest(BaseModel):
    """Partial node update. A new ``id`` renames the node everywhere."""
    id: Optional[str] = Field(None, description="New node id")
    description: Optional[str] = None
    prompt: Optional[str] = None
    position: Optional[PositionSchema] = None

    class Config:
        json_schema_extra = {
            "example": {
                "id": "welcome",
                "prompt": "Hello there!"
            }
        }


class EdgeCreateRequest(BaseModel):
    """Request to connect two nodes."""
    source: str
    target: str
    condition: str = ""
    parameters: Optional[Dict[str, str]] = None


class EdgeUpdateRequest(BaseModel):
    """Partial edge update."""
    condition: Optional[str] = None
    parameters: Optional[Dict[str, str]] = None
    target: Optional[str] = None
    label: Optional[str] = None


class StartNodeRequest(BaseModel):
    node_id: str


class SelectionRequest(BaseModel):
    node_id: Optional[str] = None
    edge_id: Optional[str] = None


class NodeErrorsResponse(BaseModel):
    """Validation errors belonging to a single node."""
    node_id: str
    errors: List[ValidationErrorSchema]


# ============================================================
# Error Schemas
# ============================================================

class ErrorResponse(BaseModel):
    """Standard error response."""
    error: str
    detail: Optional[str] = None
    status_code: int
