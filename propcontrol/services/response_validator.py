"""
Parse-then-validate boundary for model output.

The model is asked for JSON but nothing at the transport level enforces
it, so every answer goes through here before anyone reads a number from
it. There is no best-effort path: the whole response is accepted or
rejected.
"""

import json
import logging
from typing import Any

from pydantic import ValidationError

from ..core.errors import MalformedResponseError, SchemaViolationError
from ..core.utils import truncate
from ..schemas import RehabEstimate

logger = logging.getLogger(__name__)

DEFAULT_TOLERANCE = 0.10

def field_path(loc: tuple[Any, ...]) -> str:
    """('room_breakdowns', 1, 'room_total') -> 'room_breakdowns[1].room_total'"""
    path = ""
    for part in loc:
        if isinstance(part, int):
            path += f"[{part}]"
        else:
            path += f".{part}" if path else str(part)
    return path or "$"

def parse(raw_text: str) -> Any:
    try:
        return json.loads(raw_text)
    except (json.JSONDecodeError, TypeError) as exc:
        logger.warning("model response is not JSON: %s", truncate(str(raw_text), 500))
        raise MalformedResponseError(f"model response is not valid JSON: {exc}", raw_text=raw_text) from exc

def check_image_indexes(estimate: RehabEstimate, image_count: int, raw_text: str) -> None:
    for i, room in enumerate(estimate.room_breakdowns):
        if room.source_image_index >= image_count:
            raise SchemaViolationError(
                f"room_breakdowns[{i}].source_image_index",
                f"{room.source_image_index} is out of range for {image_count} photo(s)",
                raw_text,
            )

def check_reconciliation(estimate: RehabEstimate, tolerance: float, raw_text: str) -> None:
    """
    total_estimated_cost must be within ``tolerance`` (relative, floor of $1)
    of the sum of room totals. Skipped when no rooms were identified.
    """
    if not estimate.room_breakdowns:
        return
    rooms = estimate.rooms_total
    total = estimate.total_estimated_cost
    allowed = max(1.0, tolerance * max(rooms, total))
    if abs(total - rooms) > allowed:
        raise SchemaViolationError(
            "total_estimated_cost",
            f"{total:g} does not reconcile with room totals summing to {rooms:g}",
            raw_text,
        )

def validate(raw_text: str, image_count: int | None = None,
             tolerance: float = DEFAULT_TOLERANCE) -> RehabEstimate:
    data = parse(raw_text)
    try:
        estimate = RehabEstimate.model_validate(data)
    except ValidationError as exc:
        first = exc.errors()[0]
        field = field_path(tuple(first["loc"]))
        logger.warning("model response failed schema at %s: %s", field, first["msg"])
        raise SchemaViolationError(field, first["msg"], raw_text) from exc

    if image_count is not None:
        check_image_indexes(estimate, image_count, raw_text)
    check_reconciliation(estimate, tolerance, raw_text)
    return estimate
