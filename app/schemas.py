from typing import List, Optional
from datetime import datetime
from pydantic import BaseModel, ConfigDict, Field, field_validator


class CompletionLogIn(BaseModel):
    platform_id: str = Field(min_length=1)
    percentage: int = Field(strict=True)
    completion_type: str = "main"
    dlc_id: Optional[str] = None
    notes: Optional[str] = Field(default=None, max_length=2000)

    @field_validator("completion_type")
    @classmethod
    def normalize_type(cls, value: str) -> str:
        return str(value or "main").strip().lower()

    @field_validator("dlc_id", "notes")
    @classmethod
    def blank_to_none(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return None
        cleaned = value.strip()
        return cleaned or None


class RecalculateIn(BaseModel):
    platform_id: str = Field(min_length=1)


class CompletionLogOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: str
    game_id: str
    platform_id: str
    completion_type: str
    dlc_id: Optional[str] = None
    percentage: int
    logged_at: datetime
    notes: Optional[str] = None
    game_name: Optional[str] = None
    platform_name: Optional[str] = None
    dlc_name: Optional[str] = None


class DerivedScoresOut(BaseModel):
    full: int
    completionist: int


class DerivedProgressOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    main: int
    full: int
    completionist: int
    achievement_percentage: int
    has_dlcs: bool


class DlcSummaryOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    dlc_id: str
    name: str
    percentage: int
    weight: float
    required_for_full: bool
    owned: bool


class CompletionSummaryOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    main: int = 0
    full: int = 0
    completionist: int = 0
    achievement_percentage: int = 100
    has_dlcs: bool = False
    dlcs: List[DlcSummaryOut] = Field(default_factory=list)


class ProgressHistoryPointOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    percentage: int
    logged_at: datetime
    notes: str


class CompletionLogListOut(BaseModel):
    logs: List[CompletionLogOut]
    total: int
    current_percentage: int
    summary: CompletionSummaryOut
    achievement_history: List[ProgressHistoryPointOut] = Field(default_factory=list)


class CompletionLogCreatedOut(BaseModel):
    log: CompletionLogOut
    status_changed: bool
    new_status: Optional[str] = None
    derived: DerivedScoresOut


class RecalculateOut(BaseModel):
    success: bool = True
    derived: DerivedProgressOut
    status_changed: bool
    new_status: Optional[str] = None
