"""FastAPI routers for the Tracely HTTP API."""
