#!/usr/bin/env python3
"""
Simple run script for the Flow Editor service.

Usage:
    python run.py

Or with custom settings:
    HOST=127.0.0.1 PORT=8080 python run.py
"""

import uvicorn

from flowedit.config import settings


def main():
    """Run the FastAPI application."""
    host = settings.HOST
    port = settings.PORT

    print(f"""
╔═══════════════════════════════════════════════════════════════╗
║                      FlowEdit                                 ║
║                                                               ║
║  Editor backend for conversational flow graphs                ║
╠═══════════════════════════════════════════════════════════════╣
║  Server:    http://{host}:{port}                                 ║
║  API Docs:  http://{host}:{port}/docs                            ║
╠═══════════════════════════════════════════════════════════════╣
║  Demo session ID: demo-flow                                   ║
╚═══════════════════════════════════════════════════════════════╝
    """)

    uvicorn.run(
        "flowedit.main:app",
        host=host,
        port=port,
        reload=settings.DEBUG,
        log_level=settings.LOG_LEVEL.lower(),
    )


if __name__ == "__main__":
    main()
