"""
Instruction text for the rehab estimate request.

The prompt is a pure function of its inputs (no dates, no randomness) so
identical requests produce byte-identical prompts.
"""

from ..core.errors import MalformedResponseError, SchemaViolationError
from ..core.utils import format_square_footage, is_usable_number

TARGET_GRADE = '"Market Standard" (Flip grade)'
PRICING_BASIS = "US national averages"
PRICING_YEAR = 2025

UNKNOWN_AREA = "Total Square Footage: UNKNOWN (estimate based on visual evidence)"

ROLE = """You are an expert real estate general contractor and estimator.
Analyze these property interior/exterior photos and generate a DETAILED rehab estimate.
The photos are numbered in the order given, starting at 0."""

TASKS = f"""For each room/area visible:
1. Identify defects and outdated items
2. RECOMMEND renovations to bring it to {TARGET_GRADE}
3. ASSIGN COSTS (use {PRICING_BASIS} for {PRICING_YEAR})
4. LIST ASSUMPTIONS
5. PROVIDE STRATEGY (BRRRR vs FLIP)"""

RESPONSE_SHAPE = """Return ONLY a JSON object with this structure:
{
  "overall_difficulty": integer from 1 (cosmetic) to 5 (full gut),
  "total_estimated_cost": number (sum of every room_total),
  "assumptions_and_notes": ["string"],
  "strategy_analysis": {
    "brrrr_strategy": "string",
    "flip_strategy": "string",
    "recommendation": "BRRRR" or "FLIP",
    "market_positioning": "string"
  },
  "room_breakdowns": [
    {
      "room": "Kitchen",
      "source_image_index": 0,
      "observations": "string",
      "recommended_action": "string",
      "line_items": [
        { "item": "string", "cost": number, "unit": "string" }
      ],
      "room_total": number
    }
  ],
  "hidden_damage_warnings": ["string"],
  "summary_description": "string"
}

All costs are plain numbers in US dollars (no currency symbols, no ranges, no quotes).
source_image_index is the number of the photo the room appears in.
Do not wrap the JSON in markdown fences and do not add any text before or after it."""

def area_line(square_footage: float | None = None) -> str:
    if square_footage is None or not is_usable_number(square_footage) or square_footage <= 0:
        return UNKNOWN_AREA
    return f"Total Square Footage: {format_square_footage(square_footage)} sqft"

def build(square_footage: float | None = None) -> str:
    return "\n\n".join([ROLE, area_line(square_footage), TASKS, RESPONSE_SHAPE]) + "\n"

def build_repair_followup(error: MalformedResponseError | SchemaViolationError) -> str:
    """
    Explicit follow-up appended to the prompt when the previous answer was
    rejected, telling the model what was wrong with it.
    """
    if isinstance(error, SchemaViolationError):
        reason = f"field `{error.field}` was invalid ({error.reason})"
    else:
        reason = "it was not valid JSON"
    return (
        f"Your last response was rejected because {reason}. "
        "Answer again with a single JSON object that follows the structure above exactly, "
        "using numbers for every cost and \"BRRRR\" or \"FLIP\" for recommendation."
    )
