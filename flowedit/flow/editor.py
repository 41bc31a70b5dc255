"""
Editor Operations.

The edit layer's CRUD operations on a positioned graph. Every operation takes
an EditorState and returns a new one; the input is never modified, so an
operation that raises leaves the caller's state exactly as it was.
"""

from typing import Dict, List, Optional
from dataclasses import dataclass, field, replace

from flowedit.flow.converter import (
    grid_position,
    make_edge_id,
    project_to_document,
    project_to_positioned_graph,
)
from flowedit.flow.models import (
    EDGE_LABEL_PLACEHOLDER,
    FlowDocument,
    Position,
    PositionedEdge,
    PositionedGraph,
    PositionedNode,
    ValidationError,
)
from flowedit.flow.validator import validate_flow


class FlowEditError(ValueError):
    """Base class for rejected edit operations."""


class NodeNotFoundError(FlowEditError):
    def __init__(self, node_id: str):
        super().__init__(f"Node '{node_id}' not found")
        self.node_id = node_id


class EdgeNotFoundError(FlowEditError):
    def __init__(self, edge_id: str):
        super().__init__(f"Edge '{edge_id}' not found")
        self.edge_id = edge_id


class DuplicateNodeIdError(FlowEditError):
    def __init__(self, node_id: str):
        super().__init__(f"Node '{node_id}' already exists")
        self.node_id = node_id


@dataclass
class EditorState:
    """
    Everything the editor holds for one flow.

    Attributes:
        graph: Positioned nodes and the authoritative edge list
        start_node_id: Designated start node, None when unset
        selected_node_id: Node currently selected in the editor
        selected_edge_id: Edge currently selected in the editor
    """

    graph: PositionedGraph = field(default_factory=PositionedGraph)
    start_node_id: Optional[str] = None
    selected_node_id: Optional[str] = None
    selected_edge_id: Optional[str] = None

    @classmethod
    def from_document(cls, document: FlowDocument) -> "EditorState":
        """Import a document, replacing everything."""
        projection = project_to_positioned_graph(document)
        return cls(graph=projection.graph, start_node_id=projection.start_node_id)

    def document(self) -> FlowDocument:
        return project_to_document(self.graph, self.start_node_id)

    def validate(self, strict_reachability: bool = False) -> List[ValidationError]:
        return validate_flow(self.document(), strict_reachability=strict_reachability)


def _require_node(state: EditorState, node_id: str) -> PositionedNode:
    return state.graph.nodes[_node_index(state, node_id)]


def _node_index(state: EditorState, node_id: str) -> int:
    """Position of the first node with ``node_id``."""
    for index, node in enumerate(state.graph.nodes):
        if node.id == node_id:
            return index
    raise NodeNotFoundError(node_id)


def _check_node_id(node_id: str) -> None:
    if not node_id or not node_id.strip():
        raise FlowEditError("Node ID cannot be empty")


def _require_edge(state: EditorState, edge_id: str) -> PositionedEdge:
    edge = state.graph.get_edge(edge_id)
    if edge is None:
        raise EdgeNotFoundError(edge_id)
    return edge


def _next_node_id(graph: PositionedGraph) -> str:
    existing = set(graph.node_ids())
    n = 1
    while f"node_{n}" in existing:
        n += 1
    return f"node_{n}"


def _next_edge_id(graph: PositionedGraph, source: str, target: str) -> str:
    existing = {edge.id for edge in graph.edges}
    n = len(graph.outgoing_edges(source))
    while make_edge_id(source, target, n) in existing:
        n += 1
    return make_edge_id(source, target, n)


# ============================================================
# Nodes
# ============================================================

def add_node(
    state: EditorState,
    node_id: Optional[str] = None,
    position: Optional[Position] = None,
    description: str = "",
    prompt: str = "",
) -> EditorState:
    """
    Add a node to the graph.

    The first node added to a flow without a start node becomes the start.

    Args:
        state: Current editor state
        node_id: Id for the new node (defaults to the first free ``node_N``)
        position: Canvas position (defaults to the next grid slot)
        description: Initial description
        prompt: Initial prompt

    Returns:
        New editor state with the node selected
    """
    graph = state.graph
    if node_id is None:
        node_id = _next_node_id(graph)
    _check_node_id(node_id)
    if graph.get_node(node_id) is not None:
        raise DuplicateNodeIdError(node_id)

    new_node = PositionedNode(
        id=node_id,
        position=position or grid_position(len(graph.nodes)),
        description=description,
        prompt=prompt,
    )
    return replace(
        state,
        graph=PositionedGraph(nodes=graph.nodes + [new_node], edges=list(graph.edges)),
        start_node_id=state.start_node_id or node_id,
        selected_node_id=node_id,
        selected_edge_id=None,
    )


def rename_node(state: EditorState, old_id: str, new_id: str) -> EditorState:
    """
    Rename a node and rewrite every reference to it in one step.

    Updates the node, each edge's source and target, the start pointer and
    the selected-node reference. Edge ids are left as they are.

    Like every node operation, only the first node with ``old_id`` is
    affected. When an imported flow carries duplicates of that id, the
    references keep pointing at the duplicate that still holds it.
    """
    index = _node_index(state, old_id)
    if new_id == old_id:
        return state
    _check_node_id(new_id)
    if state.graph.get_node(new_id) is not None:
        raise DuplicateNodeIdError(new_id)

    nodes = list(state.graph.nodes)
    nodes[index] = replace(nodes[index], id=new_id)
    if old_id in (node.id for node in nodes):
        return replace(state, graph=PositionedGraph(nodes=nodes, edges=list(state.graph.edges)))

    edges = []
    for edge in state.graph.edges:
        if edge.source == old_id or edge.target == old_id:
            edge = replace(
                edge,
                source=new_id if edge.source == old_id else edge.source,
                target=new_id if edge.target == old_id else edge.target,
            )
        edges.append(edge)

    return replace(
        state,
        graph=PositionedGraph(nodes=nodes, edges=edges),
        start_node_id=new_id if state.start_node_id == old_id else state.start_node_id,
        selected_node_id=new_id if state.selected_node_id == old_id else state.selected_node_id,
    )


def update_node(
    state: EditorState,
    node_id: str,
    new_id: Optional[str] = None,
    description: Optional[str] = None,
    prompt: Optional[str] = None,
    position: Optional[Position] = None,
) -> EditorState:
    """Update node fields; a changed ``new_id`` goes through ``rename_node``."""
    index = _node_index(state, node_id)

    changes = {}
    if description is not None:
        changes["description"] = description
    if prompt is not None:
        changes["prompt"] = prompt
    if position is not None:
        changes["position"] = position

    if changes:
        nodes = list(state.graph.nodes)
        nodes[index] = replace(nodes[index], **changes)
        state = replace(
            state,
            graph=PositionedGraph(nodes=nodes, edges=list(state.graph.edges)),
        )

    if new_id is not None and new_id != node_id:
        state = rename_node(state, node_id, new_id)
    return state


def delete_node(state: EditorState, node_id: str) -> EditorState:
    """
    Remove a node and every edge touching it.

    If the node was the start node, the first remaining node takes over.
    Only the first node with ``node_id`` is removed; while a duplicate still
    holds the id, its edges, the start pointer and the selection stay.
    """
    index = _node_index(state, node_id)

    nodes = list(state.graph.nodes)
    del nodes[index]
    if node_id in (node.id for node in nodes):
        return replace(state, graph=PositionedGraph(nodes=nodes, edges=list(state.graph.edges)))

    edges = [
        edge for edge in state.graph.edges
        if edge.source != node_id and edge.target != node_id
    ]
    remaining_edge_ids = {edge.id for edge in edges}

    start_node_id = state.start_node_id
    if start_node_id == node_id:
        start_node_id = nodes[0].id if nodes else None

    selected_edge_id = state.selected_edge_id
    if selected_edge_id not in remaining_edge_ids:
        selected_edge_id = None

    return replace(
        state,
        graph=PositionedGraph(nodes=nodes, edges=edges),
        start_node_id=start_node_id,
        selected_node_id=None if state.selected_node_id == node_id else state.selected_node_id,
        selected_edge_id=selected_edge_id,
    )


def set_start_node(state: EditorState, node_id: str) -> EditorState:
    _require_node(state, node_id)
    return replace(state, start_node_id=node_id)


# ============================================================
# Edges
# ============================================================

def add_edge(
    state: EditorState,
    source: str,
    target: str,
    condition: str = "",
    parameters: Optional[Dict[str, str]] = None,
) -> EditorState:
    """
    Connect two existing nodes.

    Returns:
        New editor state; the new edge is last in the edge list
    """
    _require_node(state, source)
    _require_node(state, target)

    new_edge = PositionedEdge(
        id=_next_edge_id(state.graph, source, target),
        source=source,
        target=target,
        condition=condition,
        parameters=dict(parameters) if parameters is not None else {},
    )
    return replace(
        state,
        graph=PositionedGraph(
            nodes=list(state.graph.nodes),
            edges=state.graph.edges + [new_edge],
        ),
    )


def update_edge(
    state: EditorState,
    edge_id: str,
    condition: Optional[str] = None,
    parameters: Optional[Dict[str, str]] = None,
    target: Optional[str] = None,
    label: Optional[str] = None,
) -> EditorState:
    """
    Point-edit an edge by id. Only the given fields change.

    ``label`` is text typed on the canvas. It is written as the condition
    when no ``condition`` is given and the edge's condition is still blank;
    otherwise it is ignored, so the canvas always shows the condition.
    """
    edge = _require_edge(state, edge_id)
    if target is not None:
        _require_node(state, target)

    changes = {}
    if condition is not None:
        changes["condition"] = condition
    elif label and label != EDGE_LABEL_PLACEHOLDER and not edge.resolved_condition.strip():
        changes["condition"] = label
    if parameters is not None:
        changes["parameters"] = dict(parameters)
    if target is not None:
        changes["target"] = target

    updated = replace(edge, **changes)
    return replace(
        state,
        graph=PositionedGraph(
            nodes=list(state.graph.nodes),
            edges=[updated if e is edge else e for e in state.graph.edges],
        ),
    )


def delete_edge(state: EditorState, edge_id: str) -> EditorState:
    _require_edge(state, edge_id)
    return replace(
        state,
        graph=PositionedGraph(
            nodes=list(state.graph.nodes),
            edges=[edge for edge in state.graph.edges if edge.id != edge_id],
        ),
        selected_edge_id=None if state.selected_edge_id == edge_id else state.selected_edge_id,
    )


# ============================================================
# Selection
# ============================================================

def select(
    state: EditorState,
    node_id: Optional[str] = None,
    edge_id: Optional[str] = None,
) -> EditorState:
    """
    Select a node or an edge (not both). Passing neither clears the selection.
    """
    if node_id is not None and edge_id is not None:
        raise FlowEditError("Select either a node or an edge, not both")
    if node_id is not None:
        _require_node(state, node_id)
    if edge_id is not None:
        _require_edge(state, edge_id)
    return replace(state, selected_node_id=node_id, selected_edge_id=edge_id)
