from .commands import CommandError, CommandRouter
from .server import handle_request, serve

__all__ = [
    "CommandError",
    "CommandRouter",
    "handle_request",
    "serve",
]
