"""Wire encoding of tasks and their retry headers."""

from __future__ import annotations

from typing import Mapping

from pydantic import ValidationError

from services.action.task_queue.domain import MalformedTaskError, Task

ATTEMPT_HEADER = "x-attempt"
DEAD_LETTER_REASON_HEADER = "x-dead-letter-reason"
FIRST_ATTEMPT = 1


def encode_task(task: Task) -> bytes:
    """Serialize one task to its UTF-8 JSON message body."""
    return task.model_dump_json().encode("utf-8")


def decode_task(body: bytes | str) -> Task:
    """Parse one message body, raising ``MalformedTaskError`` on bad input."""
    if isinstance(body, str):
        body = body.encode("utf-8")
    try:
        return Task.model_validate_json(body)
    except ValidationError as exc:
        first = exc.errors()[0]
        location = ".".join(str(part) for part in first.get("loc", ())) or "body"
        raise MalformedTaskError(
            f"malformed task body at {location}: {first.get('msg', 'invalid')}"
        ) from exc


def attempt_from_headers(headers: Mapping[str, object] | None) -> int:
    """Return the delivery attempt number, defaulting to the first attempt."""
    if not headers:
        return FIRST_ATTEMPT
    raw = headers.get(ATTEMPT_HEADER)
    if isinstance(raw, bool):
        return FIRST_ATTEMPT
    try:
        attempt = int(raw)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        return FIRST_ATTEMPT
    return max(attempt, FIRST_ATTEMPT)
