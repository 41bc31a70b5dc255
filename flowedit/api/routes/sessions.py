"""
Session API Routes.

Endpoints for opening flows for editing and applying node/edge edits. Every
response recomputes the flow document and its validation errors from the
session's current editor state.
"""

from typing import Callable, Optional
from fastapi import APIRouter, HTTPException, Response, status
from fastapi.responses import JSONResponse
from uuid import uuid4
import logging

from flowedit.api.schemas import (
    EdgeCreateRequest,
    EdgeUpdateRequest,
    ErrorResponse,
    FlowDocumentSchema,
    NodeCreateRequest,
    NodeErrorsResponse,
    NodeUpdateRequest,
    SelectionRequest,
    SessionCreateRequest,
    SessionListResponse,
    SessionResponse,
    SessionSummary,
    StartNodeRequest,
    ValidationErrorSchema,
    edge_to_schema,
    node_to_schema,
)
from flowedit.config import settings
from flowedit.flow import editor
from flowedit.flow.editor import (
    DuplicateNodeIdError,
    EdgeNotFoundError,
    EditorState,
    FlowEditError,
    NodeNotFoundError,
)
from flowedit.flow.models import Position
from flowedit.flow.validator import filter_errors, validate_flow
from flowedit.storage.memory import StoredSession, session_storage


logger = logging.getLogger(__name__)

router = APIRouter(prefix="/sessions", tags=["Sessions"])


# ============================================================
# Helpers
# ============================================================

async def _get_session(session_id: str) -> StoredSession:
    stored = await session_storage.get(session_id)
    if not stored:
        raise HTTPException(status_code=404, detail=f"Session '{session_id}' not found")
    return stored


def _apply(operation: Callable[..., EditorState], state: EditorState, *args, **kwargs) -> EditorState:
    """Run an editor operation, mapping edit errors to HTTP errors."""
    try:
        return operation(state, *args, **kwargs)
    except (NodeNotFoundError, EdgeNotFoundError) as e:
        raise HTTPException(status_code=404, detail=str(e))
    except DuplicateNodeIdError as e:
        raise HTTPException(status_code=409, detail=str(e))
    except FlowEditError as e:
        raise HTTPException(status_code=400, detail=str(e))


async def _edit(session_id: str, operation: Callable[..., EditorState], *args, **kwargs) -> SessionResponse:
    stored = await _get_session(session_id)
    new_state = _apply(operation, stored.state, *args, **kwargs)
    stored = await session_storage.update(session_id, new_state)
    if not stored:
        raise HTTPException(status_code=404, detail=f"Session '{session_id}' not found")
    return _session_to_response(stored)


def _position(schema) -> Optional[Position]:
    return Position(x=schema.x, y=schema.y) if schema is not None else None


def _session_to_response(stored: StoredSession) -> SessionResponse:
    """Convert a stored session to its API view."""
    state = stored.state
    document = state.document()
    errors = validate_flow(document, strict_reachability=settings.STRICT_REACHABILITY)
    graph = state.graph

    return SessionResponse(
        session_id=stored.session_id,
        name=stored.name,
        start_node_id=state.start_node_id,
        selected_node_id=state.selected_node_id,
        selected_edge_id=state.selected_edge_id,
        nodes=[node_to_schema(node, graph) for node in graph.nodes],
        edges=[edge_to_schema(edge) for edge in graph.edges],
        document=document.to_dict(),
        valid=not errors,
        errors=[ValidationErrorSchema.from_error(e) for e in errors],
        created_at=stored.created_at.isoformat(),
        updated_at=stored.updated_at.isoformat(),
    )


# ============================================================
# Session CRUD Endpoints
# ============================================================

@router.post(
    "/",
    response_model=SessionResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_session(request: SessionCreateRequest) -> SessionResponse:
    """
    Open a new editing session.

    If a document is supplied it is imported and laid out on a grid;
    otherwise the session starts with an empty flow.
    """
    session_id = str(uuid4())
    state = (
        EditorState.from_document(request.document.to_document())
        if request.document is not None
        else EditorState()
    )
    stored = await session_storage.create(session_id, request.name, state)
    logger.info(f"Created session: {session_id} ({request.name})")
    return _session_to_response(stored)


@router.get("/", response_model=SessionListResponse)
async def list_sessions() -> SessionListResponse:
    """List all open sessions."""
    sessions = await session_storage.list_all()

    summaries = []
    for stored in sessions:
        state = stored.state
        errors = validate_flow(state.document(), strict_reachability=settings.STRICT_REACHABILITY)
        summaries.append(SessionSummary(
            session_id=stored.session_id,
            name=stored.name,
            node_count=len(state.graph.nodes),
            edge_count=len(state.graph.edges),
            start_node_id=state.start_node_id,
            valid=not errors,
            error_count=len(errors),
            created_at=stored.created_at.isoformat(),
            updated_at=stored.updated_at.isoformat(),
        ))

    return SessionListResponse(sessions=summaries, total=len(summaries))


@router.get(
    "/{session_id}",
    response_model=SessionResponse,
    responses={404: {"model": ErrorResponse}},
)
async def get_session(session_id: str) -> SessionResponse:
    """Get the current state of a session."""
    return _session_to_response(await _get_session(session_id))


@router.delete(
    "/{session_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    responses={404: {"model": ErrorResponse}},
)
async def delete_session(session_id: str):
    """Close a session."""
    deleted = await session_storage.delete(session_id)
    if not deleted:
        raise HTTPException(status_code=404, detail=f"Session '{session_id}' not found")
    logger.info(f"Deleted session: {session_id}")
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# ============================================================
# Document Endpoints
# ============================================================

@router.get(
    "/{session_id}/document",
    responses={404: {"model": ErrorResponse}},
)
async def download_document(session_id: str) -> JSONResponse:
    """Export the session's flow as a ``flow.json`` attachment."""
    stored = await _get_session(session_id)
    return JSONResponse(
        content=stored.state.document().to_dict(),
        headers={"Content-Disposition": 'attachment; filename="flow.json"'},
    )


@router.put(
    "/{session_id}/document",
    response_model=SessionResponse,
    responses={404: {"model": ErrorResponse}},
)
async def import_document(session_id: str, request: FlowDocumentSchema) -> SessionResponse:
    """Replace the session's flow with an imported document."""
    await _get_session(session_id)
    stored = await session_storage.update(
        session_id, EditorState.from_document(request.to_document())
    )
    if not stored:
        raise HTTPException(status_code=404, detail=f"Session '{session_id}' not found")
    logger.info(f"Imported document into session: {session_id}")
    return _session_to_response(stored)


# ============================================================
# Node Endpoints
# ============================================================

@router.post(
    "/{session_id}/nodes",
    response_model=SessionResponse,
    status_code=status.HTTP_201_CREATED,
    responses={404: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
)
async def add_node(session_id: str, request: NodeCreateRequest) -> SessionResponse:
    """Add a node. The first node of a flow becomes its start node."""
    return await _edit(
        session_id,
        editor.add_node,
        node_id=request.id,
        position=_position(request.position),
        description=request.description,
        prompt=request.prompt,
    )


@router.patch(
    "/{session_id}/nodes/{node_id}",
    response_model=SessionResponse,
    responses={
        400: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
        409: {"model": ErrorResponse},
    },
)
async def update_node(session_id: str, node_id: str, request: NodeUpdateRequest) -> SessionResponse:
    """
    Update a node.

    Changing ``id`` renames the node and rewrites every edge, the start node
    and the selection in the same update.
    """
    return await _edit(
        session_id,
        editor.update_node,
        node_id,
        new_id=request.id,
        description=request.description,
        prompt=request.prompt,
        position=_position(request.position),
    )


@router.delete(
    "/{session_id}/nodes/{node_id}",
    response_model=SessionResponse,
    responses={404: {"model": ErrorResponse}},
)
async def delete_node(session_id: str, node_id: str) -> SessionResponse:
    """Delete a node together with every edge touching it."""
    return await _edit(session_id, editor.delete_node, node_id)


@router.get(
    "/{session_id}/nodes/{node_id}/errors",
    response_model=NodeErrorsResponse,
    responses={404: {"model": ErrorResponse}},
)
async def get_node_errors(session_id: str, node_id: str) -> NodeErrorsResponse:
    """Validation errors for one node, for inline display next to its fields."""
    stored = await _get_session(session_id)
    if stored.state.graph.get_node(node_id) is None:
        raise HTTPException(status_code=404, detail=f"Node '{node_id}' not found")

    errors = stored.state.validate(strict_reachability=settings.STRICT_REACHABILITY)
    return NodeErrorsResponse(
        node_id=node_id,
        errors=[ValidationErrorSchema.from_error(e) for e in filter_errors(errors, node_id)],
    )


@router.put(
    "/{session_id}/start",
    response_model=SessionResponse,
    responses={404: {"model": ErrorResponse}},
)
async def set_start_node(session_id: str, request: StartNodeRequest) -> SessionResponse:
    """Designate the start node."""
    return await _edit(session_id, editor.set_start_node, request.node_id)


@router.put(
    "/{session_id}/selection",
    response_model=SessionResponse,
    responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
)
async def set_selection(session_id: str, request: SelectionRequest) -> SessionResponse:
    """Select a node or an edge; send neither to clear the selection."""
    return await _edit(
        session_id,
        editor.select,
        node_id=request.node_id,
        edge_id=request.edge_id,
    )


# ============================================================
# Edge Endpoints
# ============================================================

@router.post(
    "/{session_id}/edges",
    response_model=SessionResponse,
    status_code=status.HTTP_201_CREATED,
    responses={404: {"model": ErrorResponse}},
)
async def add_edge(session_id: str, request: EdgeCreateRequest) -> SessionResponse:
    """Connect two nodes."""
    return await _edit(
        session_id,
        editor.add_edge,
        request.source,
        request.target,
        condition=request.condition,
        parameters=request.parameters,
    )


@router.patch(
    "/{session_id}/edges/{edge_id}",
    response_model=SessionResponse,
    responses={404: {"model": ErrorResponse}},
)
async def update_edge(session_id: str, edge_id: str, request: EdgeUpdateRequest) -> SessionResponse:
    """Update an edge's condition, parameters, target or canvas label."""
    return await _edit(
        session_id,
        editor.update_edge,
        edge_id,
        condition=request.condition,
        parameters=request.parameters,
        target=request.target,
        label=request.label,
    )


@router.delete(
    "/{session_id}/edges/{edge_id}",
    response_model=SessionResponse,
    responses={404: {"model": ErrorResponse}},
)
async def delete_edge(session_id: str, edge_id: str) -> SessionResponse:
    """Delete an edge."""
    return await _edit(session_id, editor.delete_edge, edge_id)
