"""FastAPI application package for the dashboard."""
