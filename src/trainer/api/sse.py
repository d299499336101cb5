"""
Server-Sent Events parsing.

The trainer backend writes one JSON object per event as `data: {...}` lines,
each followed by a blank line. Some endpoints (and older backends) emit the bare
JSON object without the `data:` prefix; both are accepted.
"""

import json
import logging
from collections.abc import AsyncIterator, Iterable

from pydantic import ValidationError

from .errors import DecodingError
from .models import StreamEvent

logger = logging.getLogger(__name__)


def parse_sse_line(line: str) -> StreamEvent | None:
    """
    Parse one line of an event stream.

    Returns None for lines that carry no event (blank lines, `:` comments,
    `event:`/`id:`/`retry:` fields). Raises DecodingError for a data line
    that is not a JSON event object.
    """
    line = line.strip()
    if not line or line.startswith(":"):
        return None

    if line.startswith("data:"):
        payload = line[5:].strip()
    elif line.startswith(("event:", "id:", "retry:")):
        return None
    else:
        payload = line

    if not payload:
        return None

    try:
        return StreamEvent.model_validate(json.loads(payload))
    except (json.JSONDecodeError, ValidationError) as e:
        raise DecodingError(f"Malformed stream event: {e}") from e


def iter_sse_events(lines: Iterable[str]) -> list[StreamEvent]:
    """Parse a complete stream body (already split into lines)."""
    events = []
    for line in lines:
        event = parse_sse_line(line)
        if event is not None:
            events.append(event)
    return events


async def aiter_sse_events(lines: AsyncIterator[str]) -> AsyncIterator[StreamEvent]:
    """Parse events incrementally as lines arrive."""
    async for line in lines:
        event = parse_sse_line(line)
        if event is not None:
            logger.debug(f"Stream event: {event.type}")
            yield event
