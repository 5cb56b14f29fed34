"""oidstore ASGI application entry point.

Serve with ``uvicorn oidstore.app:app``; the store backend is chosen from
OIDSTORE_OBJECT_STORE_* environment variables.
"""

from oidstore.api.main import create_app

app = create_app()
