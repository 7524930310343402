from fastapi import FastAPI

from . import display, health, help, pins, presence, sessions


def register_routes(app: FastAPI) -> None:
    """Attach all API routers to the FastAPI application."""
    app.include_router(health.router)
    app.include_router(sessions.router)
    app.include_router(presence.router)
    app.include_router(help.router)
    app.include_router(pins.router)
    app.include_router(display.router)
