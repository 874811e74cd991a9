"""Repository clients."""
