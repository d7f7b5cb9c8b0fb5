from typing import Annotated, Literal

from pydantic import BaseModel, ConfigDict, Field, StrictFloat, StrictInt, StrictStr

# Strict scalars: the model's JSON is not coerced ("1200" is not a cost).
Cost = Annotated[StrictFloat, Field(ge=0, allow_inf_nan=False)]
Text = StrictStr

class _Frozen(BaseModel):
    model_config = ConfigDict(frozen=True, extra="ignore")

class LineItem(_Frozen):
    item: Text
    cost: Cost
    unit: Text

class RoomBreakdown(_Frozen):
    room: Text
    source_image_index: Annotated[StrictInt, Field(ge=0)]
    observations: Text
    recommended_action: Text
    line_items: tuple[LineItem, ...]
    room_total: Cost

class StrategyAnalysis(_Frozen):
    brrrr_strategy: Text
    flip_strategy: Text
    recommendation: Literal["BRRRR", "FLIP"]
    market_positioning: Text

class RehabEstimate(_Frozen):
    """Itemized renovation estimate produced from a set of property photos."""
    overall_difficulty: Annotated[StrictInt, Field(ge=1, le=5)]
    total_estimated_cost: Cost
    assumptions_and_notes: tuple[Text, ...]
    strategy_analysis: StrategyAnalysis
    room_breakdowns: tuple[RoomBreakdown, ...]
    hidden_damage_warnings: tuple[Text, ...]
    summary_description: Text

    @property
    def rooms_total(self) -> float:
        return sum(r.room_total for r in self.room_breakdowns)

class DesignOptions(BaseModel):
    furniture_style: str = ""
    wall_color: str = ""
    flooring: str = ""
    curtains: str = ""
    decor_items: list[str] = []

class ErrorResponse(BaseModel):
    error: str
    detail: str
    field: str | None = None
    raw_response: str | None = None

# ----- Notification relay -----

Priority = Literal["URGENT", "HIGH", "MEDIUM", "LOW"]

class NotificationRequest(BaseModel):
    # Optional here so a missing message is answered with 400, not 422
    message: str | None = None
    priority: Priority = "MEDIUM"
    follow_up_id: str | None = Field(default=None, alias="followUpId")

    model_config = ConfigDict(populate_by_name=True)

class NotificationResponse(BaseModel):
    success: bool
    message_id: int | None = Field(default=None, serialization_alias="messageId")
    follow_up_id: str | None = Field(default=None, serialization_alias="followUpId")
