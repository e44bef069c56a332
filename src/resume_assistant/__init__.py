"""Resume assistant: a chat proxy for a hosted agent plus a chat widget.

The FastAPI application factory lives in ``resume_assistant/server.py``
(see :func:`create_app`); the conversation state machine in
``resume_assistant/widget.py``.

Typical usage
-------------
from resume_assistant import create_app
app = create_app()

or, from the provided launcher:

python scripts/run_server.py --host 127.0.0.1 --port 8000
"""

from __future__ import annotations

from .server import create_app
from .widget import ChatApiClient, ChatState, ChatWidget, Message, Role

__all__ = [
    "create_app",
    "ChatApiClient",
    "ChatState",
    "ChatWidget",
    "Message",
    "Role",
    "__version__",
    "get_version",
]

# ---------------------------------------------------------------------
# Version handling
# ---------------------------------------------------------------------
__version__ = "0.1.0"


def get_version() -> str:
    """Return the package version."""
    return __version__
