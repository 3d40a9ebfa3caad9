"""HTTP API: FastAPI application, dependencies and route modules."""
