"""Operational scripts shipped with the gateway."""
