"""oidstore API routes."""
