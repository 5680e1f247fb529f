from __future__ import annotations

from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

from login_insights.schemas.aggregates import TargetBucket, UserBucket


class _ContractModel(BaseModel):
    model_config = ConfigDict(extra="forbid", populate_by_name=True)


class RunResponse(_ContractModel):
    status: Literal["success"]
    message: str
    entry_count: int
    page_count: int
    event_count: int
    user_count: int
    target_count: int
    completed_at: str
    download_filename: str


class RankedUserItem(_ContractModel):
    key: str
    count: int
    bucket: UserBucket


class RankedTargetItem(_ContractModel):
    key: str
    count: int
    bucket: TargetBucket


class RankedUsersResponse(_ContractModel):
    entry_count: int
    entries: List[RankedUserItem]


class RankedTargetsResponse(_ContractModel):
    entry_count: int
    entries: List[RankedTargetItem]


class UserSummaryRow(_ContractModel):
    rank: int
    user_name: str = Field(alias="userName")
    count: int
    success: int
    failure: int
    success_pct: Optional[str] = Field(default=None, alias="successPct")
    failure_pct: Optional[str] = Field(default=None, alias="failurePct")


class UserTableResponse(_ContractModel):
    row_count: int
    rows: List[UserSummaryRow]
