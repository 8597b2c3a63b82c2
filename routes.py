# routes.py
from fastapi import FastAPI
from controller.assistant_controller import assistant_router


def register_routes(app: FastAPI) -> None:
    """Register & Access control controllers here."""
    app.include_router(assistant_router)
