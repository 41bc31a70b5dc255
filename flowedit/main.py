"""
FlowEdit - FastAPI Application Entry Point.

Backend for a conversational flow editor: import, edit, validate and export
flow documents.
"""

from contextlib import asynccontextmanager
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
import logging

from flowedit.config import settings
from flowedit.api.routes import flow, sessions
from flowedit.workflows.order_flow import DEMO_SESSION_ID, register_order_flow


# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler."""
    # Startup
    logger.info(f"Starting {settings.APP_NAME} v{settings.APP_VERSION}")

    if settings.REGISTER_DEMO_FLOW:
        await register_order_flow()

    yield

    # Shutdown
    logger.info("Shutting down...")


# Create FastAPI application
app = FastAPI(
    title=settings.APP_NAME,
    description="""
## Flow Editor API

Edit and validate conversational flow graphs.

### Concepts
- **Nodes**: Dialogue states with an id, description and prompt
- **Edges**: Outgoing transitions guarded by a condition, with optional parameters
- **Start node**: Exactly one node where the conversation begins
- **Validation**: Integrity, completeness and connectivity checks, reported as data

### Quick Start
1. Validate a document: `POST /flow/validate`
2. Open it for editing: `POST /sessions/`
3. Edit nodes and edges: `/sessions/{session_id}/nodes`, `/sessions/{session_id}/edges`
4. Download the result: `GET /sessions/{session_id}/document`

### Demo Flow
A pre-registered pizza ordering flow is available as session `demo-flow`.
    """,
    version=settings.APP_VERSION,
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
)


# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# Include routers
app.include_router(flow.router)
app.include_router(sessions.router)


# ============================================================
# Root Endpoints
# ============================================================

@app.get("/", tags=["Root"])
async def root():
    """API root - returns basic info and links."""
    return {
        "name": settings.APP_NAME,
        "version": settings.APP_VERSION,
        "description": "Editor backend for conversational flow graphs",
        "docs": "/docs",
        "redoc": "/redoc",
        "endpoints": {
            "validate": "/flow/validate",
            "import": "/flow/import",
            "export": "/flow/export",
            "sessions": "/sessions",
        },
        "demo_session": DEMO_SESSION_ID,
    }


@app.get("/health", tags=["Root"])
async def health():
    """Health check endpoint."""
    from flowedit.storage.memory import session_storage

    return {
        "status": "healthy",
        "version": settings.APP_VERSION,
        "sessions_count": len(session_storage),
    }


# ============================================================
# Error Handlers
# ============================================================

@app.exception_handler(Exception)
async def global_exception_handler(request, exc):
    """Global exception handler for unhandled errors."""
    logger.exception(f"Unhandled error: {exc}")
    return JSONResponse(
        status_code=500,
        content={
            "error": "Internal Server Error",
            "detail": str(exc) if settings.DEBUG else "An unexpected error occurred",
        },
    )
