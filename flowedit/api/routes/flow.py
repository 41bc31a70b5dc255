"""
Flow API Routes.

Stateless endpoints: validate a flow document, project it onto the canvas,
or flatten a canvas back into a document.
"""

from fastapi import APIRouter
import logging

from flowedit.api.schemas import (
    ExportRequest,
    ExportResponse,
    FlowDocumentSchema,
    ImportResponse,
    ValidateResponse,
    ValidationErrorSchema,
    edge_to_schema,
    node_to_schema,
)
from flowedit.config import settings
from flowedit.flow.converter import project_to_document, project_to_positioned_graph
from flowedit.flow.validator import validate_flow


logger = logging.getLogger(__name__)

router = APIRouter(prefix="/flow", tags=["Flow"])


@router.post("/validate", response_model=ValidateResponse)
async def validate_document(request: FlowDocumentSchema) -> ValidateResponse:
    """
    Validate a flow document.

    Always returns 200; problems are reported in ``errors``.
    """
    errors = validate_flow(
        request.to_document(),
        strict_reachability=settings.STRICT_REACHABILITY,
    )
    return ValidateResponse(
        valid=not errors,
        errors=[ValidationErrorSchema.from_error(e) for e in errors],
    )


@router.post("/import", response_model=ImportResponse)
async def import_document(request: FlowDocumentSchema) -> ImportResponse:
    """Lay a flow document out as positioned nodes and edges."""
    projection = project_to_positioned_graph(request.to_document())
    graph = projection.graph
    logger.info(
        f"Imported flow with {len(projection.nodes)} nodes and {len(projection.edges)} edges"
    )
    return ImportResponse(
        nodes=[node_to_schema(node, graph) for node in projection.nodes],
        edges=[edge_to_schema(edge) for edge in projection.edges],
        start_node_id=projection.start_node_id,
    )


@router.post("/export", response_model=ExportResponse)
async def export_document(request: ExportRequest) -> ExportResponse:
    """Flatten canvas nodes and edges into a flow document and validate it."""
    document = project_to_document(request.to_graph(), request.start_node_id)
    errors = validate_flow(document, strict_reachability=settings.STRICT_REACHABILITY)
    return ExportResponse(
        document=document.to_dict(),
        valid=not errors,
        errors=[ValidationErrorSchema.from_error(e) for e in errors],
    )
