import json
from typing import Sequence

from .base import EstimationModel
from ..core.utils import fnv1a_32, seeded_rand, round_cost
from ..data.base import EncodedImagePart

ROOMS = ["Kitchen", "Primary Bathroom", "Living Room", "Bedroom", "Exterior", "Basement"]

# (item, unit, low, high) per room
LINE_ITEMS = {
    "Kitchen": [("Shaker cabinets + quartz counters", "lump sum", 9000, 22000),
                ("LVP flooring", "250 sqft", 1200, 2600)],
    "Primary Bathroom": [("Vanity, toilet and fixtures", "lump sum", 1800, 4200),
                         ("Tub surround tile", "lump sum", 1500, 3800)],
    "Living Room": [("Interior paint", "room", 600, 1400),
                    ("LVP flooring", "350 sqft", 1500, 3200)],
    "Bedroom": [("Interior paint", "room", 450, 1000),
                ("Carpet replacement", "180 sqft", 700, 1500)],
    "Exterior": [("Exterior paint", "lump sum", 3500, 9000),
                 ("Gutter repair", "linear ft", 400, 1200)],
    "Basement": [("Waterproofing and sump", "lump sum", 2500, 8000),
                 ("Drywall patch", "lump sum", 500, 1500)],
}

def area_note(prompt: str) -> str:
    for line in prompt.splitlines():
        if line.startswith("Total Square Footage:") and line.endswith("sqft"):
            return f"Area basis: {line.split(':', 1)[1].strip()}."
    return "Area not stated; costs scaled from the rooms visible in the photos."

class MockModel(EstimationModel):
    """
    Deterministic placeholder model for local dev and demos. Seeds off the
    photo bytes so the same photos always produce the same estimate, and
    answers with JSON text in the same shape the real model is asked for.
    """
    name = "mock"

    async def request(self, parts: Sequence[EncodedImagePart], prompt: str) -> str:
        rooms = []
        for index, part in enumerate(parts):
            seed = fnv1a_32(part.data[:512] + str(index))
            name = ROOMS[int(seeded_rand(seed, 1)[0] * len(ROOMS)) % len(ROOMS)]
            items = []
            for j, (item, unit, low, high) in enumerate(LINE_ITEMS[name]):
                r = seeded_rand(seed + j + 1, 1)[0]
                items.append({"item": item, "cost": round_cost(low + r * (high - low)), "unit": unit})
            rooms.append({
                "room": name,
                "source_image_index": index,
                "observations": f"Dated finishes visible in photo {index}.",
                "recommended_action": f"Update {name.lower()} to market standard.",
                "line_items": items,
                "room_total": sum(i["cost"] for i in items),
            })

        total = sum(r["room_total"] for r in rooms)
        difficulty = max(1, min(5, 1 + total // 15_000))
        flip = total < 40_000
        return json.dumps({
            "overall_difficulty": difficulty,
            "total_estimated_cost": total,
            "assumptions_and_notes": [
                "Mock estimate: costs are synthetic and for demonstration only.",
                area_note(prompt),
            ],
            "strategy_analysis": {
                "brrrr_strategy": "Refinance after cosmetic rehab once rents are stabilized.",
                "flip_strategy": "List after full cosmetic refresh at market-standard finishes.",
                "recommendation": "FLIP" if flip else "BRRRR",
                "market_positioning": "Entry-level buyers seeking move-in ready homes.",
            },
            "room_breakdowns": rooms,
            "hidden_damage_warnings": ["Check for moisture behind wet-wall finishes."] if rooms else [],
            "summary_description": f"{len(rooms)} area(s) reviewed; estimated rehab ${total:,}.",
        })
