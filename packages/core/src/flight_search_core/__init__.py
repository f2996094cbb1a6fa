"""Shared DTOs for Flight Search."""
