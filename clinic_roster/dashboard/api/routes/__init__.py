"""API routers for the dashboard."""
