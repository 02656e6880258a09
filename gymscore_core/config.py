"""Tunable limits for the scoring core."""
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field


class CoreSettings(BaseModel):
    """Settings shared by the action layer.

    Embedders build one from their own config source; nothing here reads
    files or the environment.
    """

    # Newest-first history rows returned by participant_history()
    recent_scores_limit: int = Field(10, ge=1, le=500)
    # Roster entries accepted per submission
    max_roster_entries: int = Field(500, ge=1, le=5000)
    # Decimal places used for score strings
    display_places: int = Field(1, ge=0, le=3)
    # Positions that count as a medal in history views
    podium_places: int = Field(3, ge=1, le=10)
    # Upper bound for difficulty and execution
    max_component_score: Decimal = Field(Decimal("10"), gt=0)

    model_config = ConfigDict(frozen=True)


DEFAULT_SETTINGS = CoreSettings()
