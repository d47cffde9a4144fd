"""FastAPI application and entrypoint registry."""
