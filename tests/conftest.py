import copy
import os

# Settings read the environment at import time; pin a test profile first.
os.environ["MODEL_PROVIDER"] = "mock"
os.environ["ENV"] = "dev"
os.environ["API_KEY"] = ""
os.environ["RATE_LIMIT_RPM"] = "10000"
os.environ.pop("TELEGRAM_BOT_TOKEN", None)

import pytest

from propcontrol.core.cache import counters
from propcontrol.data.base import PhotoInput

JPEG = b"\xff\xd8\xff\xe0\x00\x10JFIF\x00" + b"\x01" * 64
PNG = b"\x89PNG\r\n\x1a\n" + b"\x02" * 64

VALID_ESTIMATE = {
    "overall_difficulty": 3,
    "total_estimated_cost": 17000,
    "assumptions_and_notes": ["Electrical assumed to code", "No permits required"],
    "strategy_analysis": {
        "brrrr_strategy": "Rent at $1,650 after rehab and refinance at 75% LTV.",
        "flip_strategy": "Sell to first-time buyers after cosmetic refresh.",
        "recommendation": "BRRRR",
        "market_positioning": "Workforce housing near the hospital district.",
    },
    "room_breakdowns": [
        {
            "room": "Kitchen",
            "source_image_index": 0,
            "observations": "Original laminate counters, dated oak cabinets.",
            "recommended_action": "Replace counters, paint cabinets, new hardware.",
            "line_items": [
                {"item": "Quartz counters", "cost": 3500, "unit": "40 sqft"},
                {"item": "Cabinet paint", "cost": 1500, "unit": "lump sum"},
            ],
            "room_total": 5000,
        },
        {
            "room": "Bathroom",
            "source_image_index": 1,
            "observations": "Cracked tile surround, water stains on ceiling.",
            "recommended_action": "Full bathroom remodel.",
            "line_items": [
                {"item": "Tile surround", "cost": 4500, "unit": "lump sum"},
                {"item": "Vanity and fixtures", "cost": 7500, "unit": "lump sum"},
            ],
            "room_total": 12000,
        },
    ],
    "hidden_damage_warnings": ["Ceiling stain suggests a past leak from the upstairs bath."],
    "summary_description": "Solid bones; kitchen and bath drive the budget.",
}


@pytest.fixture(autouse=True)
def _reset_rate_limit():
    counters.clear()
    yield


@pytest.fixture
def estimate_dict():
    return copy.deepcopy(VALID_ESTIMATE)


@pytest.fixture
def photos():
    return [
        PhotoInput(content=JPEG, mime_type="image/jpeg", filename="kitchen.jpg"),
        PhotoInput(content=PNG, mime_type="image/png", filename="bath.png"),
    ]


class FakeModel:
    """Records every call; answers with queued responses (exceptions are raised)."""
    name = "fake"

    def __init__(self, *responses):
        self.responses = list(responses)
        self.calls = []

    async def request(self, parts, prompt):
        self.calls.append((list(parts), prompt))
        response = self.responses.pop(0) if len(self.responses) > 1 else self.responses[0]
        if isinstance(response, Exception):
            raise response
        return response
