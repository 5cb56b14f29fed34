"""oidstore HTTP gateway."""
