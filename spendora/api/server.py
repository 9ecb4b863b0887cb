"""
JSON-lines command server.

The UI process talks to the backend over a pair of pipes, one JSON object per
line in each direction:

    request:  {"id": 1, "command": "add-expense", "args": [{...}]}
    response: {"id": 1, "ok": true, "result": {...}}
              {"id": 1, "ok": false, "error": "..."}
"""

import json
import logging
from typing import IO, Any

from .commands import CommandError, CommandRouter

logger = logging.getLogger(__name__)


def handle_request(router: CommandRouter, request: Any) -> dict:
    """Run one decoded request and build its response."""
    if not isinstance(request, dict):
        return {"id": None, "ok": False, "error": "Request must be a JSON object"}

    request_id = request.get("id")
    command = request.get("command")
    args = request.get("args") or []

    if not isinstance(command, str):
        return {"id": request_id, "ok": False, "error": "Missing command"}
    if not isinstance(args, list):
        args = [args]

    try:
        result = router.dispatch(command, *args)
        return {"id": request_id, "ok": True, "result": result}
    except CommandError as e:
        return {"id": request_id, "ok": False, "error": e.message}


def serve(router: CommandRouter, stdin: IO[str], stdout: IO[str]) -> int:
    """
    Answer requests from `stdin` until it is closed.

    Blank lines are ignored; a line that is not valid JSON gets an error
    response with a null id.

    Returns:
        Number of requests handled
    """
    handled = 0
    logger.info("Command server ready")

    for line in stdin:
        line = line.strip()
        if not line:
            continue

        try:
            request = json.loads(line)
        except json.JSONDecodeError as e:
            logger.warning(f"Invalid request line: {e}")
            response = {"id": None, "ok": False, "error": f"Invalid JSON: {e.msg}"}
        else:
            response = handle_request(router, request)

        stdout.write(json.dumps(response) + "\n")
        stdout.flush()
        handled += 1

    logger.info(f"Command server stopped after {handled} request(s)")
    return handled
