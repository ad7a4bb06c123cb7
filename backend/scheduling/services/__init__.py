"""Scheduling engine components and the application service around them."""
