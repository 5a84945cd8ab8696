"""ASGI entrypoint: `uvicorn main:app`."""

from forge_app.app import create_app


app = create_app()
