"""
Calculation state model for the singleton bookkeeping record.
"""
from datetime import datetime
from typing import Optional

from pydantic import BaseModel


class CalculationState(BaseModel):
    """
    Checkpoint timestamps persisted on the reserved state record.
    """
    record_id: str
    last_calculated_at: Optional[datetime] = None
    last_triggered_at: Optional[datetime] = None
