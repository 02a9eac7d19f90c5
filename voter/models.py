from datetime import datetime
from enum import Enum
from typing import Optional
from pydantic import BaseModel, Field

from config import TIE_SENTINEL


class Outcome(str, Enum):
    FIRST = "first"
    SECOND = "second"
    TIE = "tie"
    UNKNOWN = "unknown"


class Entry(BaseModel):
    """A votable project scraped from the page."""
    title: str
    external_ref: str
    observed_at: datetime = Field(default_factory=datetime.now)


class DecisionTarget(BaseModel):
    """A radio option exposed by the vote form."""
    selectable_id: str
    title: str

    @property
    def is_tie(self) -> bool:
        return self.selectable_id == TIE_SENTINEL


class Decision(BaseModel):
    outcome: Outcome
    rationale: str = ""


class CredentialRecord(BaseModel):
    name: str
    value: str


class Matchup(BaseModel):
    first: DecisionTarget
    second: DecisionTarget
    first_entry: Optional[Entry] = None
    second_entry: Optional[Entry] = None
    tie: Optional[DecisionTarget] = None

    def target_for(self, outcome: Outcome) -> Optional[DecisionTarget]:
        """Map a decision outcome onto the form option to select."""
        if outcome == Outcome.FIRST:
            return self.first
        if outcome == Outcome.SECOND:
            return self.second
        if outcome == Outcome.TIE:
            return self.tie
        return None
