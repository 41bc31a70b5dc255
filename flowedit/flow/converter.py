"""
Flow Converter.

Maps between the canonical FlowDocument and the positioned graph the editor
works on. Both directions are pure: inputs are only read and every output is
freshly built, so the edit layer can re-run them on every change.
"""

from typing import Dict, List, NamedTuple, Optional, Set
import logging

from flowedit.flow.models import (
    Edge,
    FlowDocument,
    Node,
    Position,
    PositionedEdge,
    PositionedGraph,
    PositionedNode,
)


logger = logging.getLogger(__name__)

# Reference grid layout for imported nodes
GRID_COLUMNS = 3
GRID_X_SPACING = 250
GRID_Y_SPACING = 200


class Projection(NamedTuple):
    """Result of projecting a document onto the canvas."""
    nodes: List[PositionedNode]
    edges: List[PositionedEdge]
    start_node_id: Optional[str]

    @property
    def graph(self) -> PositionedGraph:
        return PositionedGraph(nodes=list(self.nodes), edges=list(self.edges))


def grid_position(
    index: int,
    columns: int = GRID_COLUMNS,
    x_spacing: float = GRID_X_SPACING,
    y_spacing: float = GRID_Y_SPACING,
) -> Position:
    """Default canvas slot for the ``index``-th node."""
    return Position(
        x=(index % columns) * x_spacing,
        y=(index // columns) * y_spacing,
    )


def edge_condition(edge: PositionedEdge) -> str:
    """Resolve the condition to persist for a canvas edge."""
    return edge.resolved_condition


def make_edge_id(source: str, target: str, index: int) -> str:
    return f"edge_{source}_{target}_{index}"


def _copy_edge(edge: Edge) -> Edge:
    parameters = dict(edge.parameters) if edge.parameters is not None else None
    return Edge(to_node_id=edge.to_node_id, condition=edge.condition, parameters=parameters)


def project_to_document(
    graph: PositionedGraph,
    start_node_id: Optional[str],
) -> FlowDocument:
    """
    Flatten a positioned graph into a FlowDocument.

    Each node's edges are rebuilt from ``graph.edges``; the ``edges`` cached
    on the positioned node is ignored.

    Args:
        graph: Current canvas state
        start_node_id: Designated start node (None when unset)

    Returns:
        A new FlowDocument with node and edge order following the graph
    """
    outgoing: Dict[str, List[Edge]] = {}
    for edge in graph.edges:
        outgoing.setdefault(edge.source, []).append(
            Edge(
                to_node_id=edge.target,
                condition=edge_condition(edge),
                parameters=edge.parameters,
            )
        )

    nodes = []
    for node in graph.nodes:
        # Copy per node so duplicate ids never share edge objects
        edges = [_copy_edge(e) for e in outgoing.get(node.id, [])]
        nodes.append(
            Node(
                id=node.id,
                prompt=node.prompt,
                description=node.description,
                edges=edges,
            )
        )

    logger.debug(
        "Projected %d nodes / %d edges to document", len(nodes), len(graph.edges)
    )
    return FlowDocument(start_node_id=start_node_id or "", nodes=nodes)


def project_to_positioned_graph(
    document: FlowDocument,
    columns: int = GRID_COLUMNS,
    x_spacing: float = GRID_X_SPACING,
    y_spacing: float = GRID_Y_SPACING,
) -> Projection:
    """
    Lay a FlowDocument out on the canvas.

    Nodes are placed on a fixed grid by index. Every edge gets an id built
    from its source, target and position within the source node. Those ids
    can still collide, either through duplicate node ids or because
    underscores in node ids make the joined parts ambiguous (``a_b`` to
    ``c`` and ``a`` to ``b_c`` both give ``edge_a_b_c_0``), so a numeric
    suffix keeps every id unique.

    Args:
        document: Document to project
        columns: Grid width in nodes
        x_spacing: Horizontal distance between grid slots
        y_spacing: Vertical distance between grid slots

    Returns:
        Projection of positioned nodes, positioned edges and start node id
    """
    positioned_nodes: List[PositionedNode] = []
    positioned_edges: List[PositionedEdge] = []
    used_ids: Set[str] = set()

    for index, node in enumerate(document.nodes):
        positioned_nodes.append(
            PositionedNode(
                id=node.id,
                position=grid_position(index, columns, x_spacing, y_spacing),
                description=node.description,
                prompt=node.prompt,
                edges=[_copy_edge(e) for e in node.edges],
            )
        )

        for edge_index, edge in enumerate(node.edges):
            edge_id = make_edge_id(node.id, edge.to_node_id, edge_index)
            if edge_id in used_ids:
                suffix = 1
                while f"{edge_id}_{suffix}" in used_ids:
                    suffix += 1
                edge_id = f"{edge_id}_{suffix}"
            used_ids.add(edge_id)

            positioned_edges.append(
                PositionedEdge(
                    id=edge_id,
                    source=node.id,
                    target=edge.to_node_id,
                    condition=edge.condition,
                    parameters=dict(edge.parameters) if edge.parameters is not None else None,
                )
            )

    logger.debug(
        "Projected document to %d positioned nodes / %d edges",
        len(positioned_nodes),
        len(positioned_edges),
    )
    return Projection(
        nodes=positioned_nodes,
        edges=positioned_edges,
        start_node_id=document.start_node_id or None,
    )
