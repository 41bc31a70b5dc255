"""
Flow Validator.

Inspects a FlowDocument and reports every problem it finds as data. Nothing
here raises for a well-formed document, so the edit layer can validate on
every change and simply render the result.
"""

from typing import List, Optional, Set
import logging

from flowedit.flow.models import ErrorCategory, FlowDocument, ValidationError


logger = logging.getLogger(__name__)


def _is_blank(value: Optional[str]) -> bool:
    return not value or value.strip() == ""


def validate_flow(
    document: FlowDocument,
    strict_reachability: bool = False,
) -> List[ValidationError]:
    """
    Validate a flow document.

    Checks run in a fixed order and never short-circuit:
    1. Start node is set and exists
    2. Node ids are unique (one error per repeated occurrence)
    3. Each node has an id, description and prompt
    4. Each edge has a condition and an existing target
    5. Each node is the start node or the target of some edge

    The connectivity check in step 5 only looks for incoming references. With
    ``strict_reachability`` an extra pass also flags nodes that no path from
    the start node reaches.

    Args:
        document: The document to inspect
        strict_reachability: Also run the path-from-start traversal

    Returns:
        Ordered list of validation errors (empty if valid)
    """
    errors: List[ValidationError] = []
    start_node_id = document.start_node_id
    node_ids = [node.id for node in document.nodes]
    known_ids = set(node_ids)

    # Start node
    if not start_node_id:
        errors.append(ValidationError(
            field="start_node_id",
            message="Start node must be specified",
            category=ErrorCategory.INTEGRITY,
        ))
    elif start_node_id not in known_ids:
        errors.append(ValidationError(
            field="start_node_id",
            message=f'Start node "{start_node_id}" does not exist',
            category=ErrorCategory.INTEGRITY,
        ))

    # Duplicate ids: every occurrence after the first
    seen: Set[str] = set()
    for node_id in node_ids:
        if node_id in seen:
            errors.append(ValidationError(
                field=f"node_{node_id}",
                message=f'Duplicate node ID: "{node_id}"',
                category=ErrorCategory.INTEGRITY,
            ))
        seen.add(node_id)

    # Required fields, then edges, per node
    for node in document.nodes:
        if _is_blank(node.id):
            errors.append(ValidationError(
                field=f"node_{node.id}_id",
                message="Node ID is required",
                category=ErrorCategory.COMPLETENESS,
            ))

        if _is_blank(node.description):
            errors.append(ValidationError(
                field=f"node_{node.id}_description",
                message=f'Description is required for node "{node.id}"',
                category=ErrorCategory.COMPLETENESS,
            ))

        if _is_blank(node.prompt):
            errors.append(ValidationError(
                field=f"node_{node.id}_prompt",
                message=f'Prompt is required for node "{node.id}"',
                category=ErrorCategory.COMPLETENESS,
            ))

        for index, edge in enumerate(node.edges):
            if _is_blank(edge.condition):
                errors.append(ValidationError(
                    field=f"node_{node.id}_edge_{index}_condition",
                    message=f'Condition is required for edge from "{node.id}"',
                    category=ErrorCategory.COMPLETENESS,
                ))

            if edge.to_node_id not in known_ids:
                errors.append(ValidationError(
                    field=f"node_{node.id}_edge_{index}_target",
                    message=f'Target node "{edge.to_node_id}" does not exist',
                    category=ErrorCategory.INTEGRITY,
                ))

    # Incoming-reference connectivity
    referenced: Set[str] = set()
    if start_node_id:
        referenced.add(start_node_id)
    for node in document.nodes:
        for edge in node.edges:
            referenced.add(edge.to_node_id)

    disconnected: Set[str] = set()
    for node in document.nodes:
        if node.id not in referenced and node.id != start_node_id:
            disconnected.add(node.id)
            errors.append(ValidationError(
                field=f"node_{node.id}_disconnected",
                message=f'Node "{node.id}" is disconnected from the flow',
                category=ErrorCategory.CONNECTIVITY,
            ))

    if strict_reachability:
        reachable = reachable_from_start(document)
        for node in document.nodes:
            if node.id in reachable or node.id in disconnected:
                continue
            errors.append(ValidationError(
                field=f"node_{node.id}_unreachable",
                message=f'Node "{node.id}" cannot be reached from the start node',
                category=ErrorCategory.CONNECTIVITY,
            ))

    logger.debug("Validated %d nodes: %d errors", len(document.nodes), len(errors))
    return errors


def reachable_from_start(document: FlowDocument) -> Set[str]:
    """Node ids reachable from the start node by following edges."""
    start_node_id = document.start_node_id
    if not start_node_id:
        return set()

    targets = {}
    for node in document.nodes:
        targets.setdefault(node.id, []).extend(e.to_node_id for e in node.edges)

    reachable: Set[str] = set()
    to_visit = [start_node_id]

    while to_visit:
        node_id = to_visit.pop()
        if node_id in reachable or node_id not in targets:
            continue

        reachable.add(node_id)
        to_visit.extend(targets[node_id])

    return reachable


def filter_errors(
    errors: List[ValidationError],
    node_id: str,
    edge_index: Optional[int] = None,
) -> List[ValidationError]:
    """
    Errors belonging to one node, or to one edge of that node.

    Matching is by substring on the ``field`` tag, so a node whose id is a
    prefix of another node's id will also pick up that node's errors.
    """
    needle = f"node_{node_id}"
    if edge_index is not None:
        needle = f"{needle}_edge_{edge_index}_"
    return [error for error in errors if needle in error.field]


def is_valid(errors: List[ValidationError]) -> bool:
    return len(errors) == 0
