"""Dashboard services: organization directory and roster aggregation."""
