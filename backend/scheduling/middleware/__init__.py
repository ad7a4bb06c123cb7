"""ASGI middleware for the scheduling service."""
