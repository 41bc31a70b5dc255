"""
API package - FastAPI routes and schemas.
"""

from flowedit.api.routes import flow, sessions

__all__ = ["flow", "sessions"]
