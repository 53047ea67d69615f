from pydantic import BaseModel, ConfigDict, Field


class VisibilityRules(BaseModel):
    threshold_ratio: float = Field(default=0.5, ge=0.0, le=1.0)
    root_margin: str = "0px"

class DwellRules(BaseModel):
    image_seconds: float = Field(default=3.0, ge=0.0)
    media_seconds: float = Field(default=10.0, ge=0.0)

class TrackingRules(BaseModel):
    auto_track: bool = True
    require_entitlement: bool = True
    visibility: VisibilityRules = Field(default_factory=VisibilityRules)
    dwell: DwellRules = Field(default_factory=DwellRules)

class LedgerRules(BaseModel):
    timeout_seconds: float = Field(default=5.0, gt=0.0)
    history_limit: int = Field(default=50, ge=1)
    max_history_limit: int = Field(default=200, ge=1)

class Rules(BaseModel):
    tracking: TrackingRules = Field(default_factory=TrackingRules)
    ledger: LedgerRules = Field(default_factory=LedgerRules)

    model_config = ConfigDict(extra="forbid")
