"""FastAPI wiring for the scheduling service."""
