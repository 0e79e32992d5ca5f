from pydantic import BaseModel
from typing import Dict


class ContentOverview(BaseModel):
    counts: Dict[str, int]
    total: int


class UserOverview(BaseModel):
    total_users: int
    new_users_last_7_days: int
    new_users_last_30_days: int
    scans: Dict[str, int]
    total_scans: int
