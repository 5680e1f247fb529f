from __future__ import annotations

from typing import List

from pydantic import BaseModel, ConfigDict, Field

from login_insights.schemas.event_models import EventId, LoginAction


class _BucketModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class UserLoginAttempt(_BucketModel):
    target: str
    id: EventId
    ip: str
    action: LoginAction


class TargetLoginAttempt(_BucketModel):
    user: str
    id: EventId
    ip: str
    action: LoginAction


class SuccessFailureTally(_BucketModel):
    success: int = 0
    failure: int = 0


class UserBucket(_BucketModel):
    count: int = 0
    login_attempts: List[UserLoginAttempt] = Field(default_factory=list, alias="loginAttempts")
    success_failure_tally: SuccessFailureTally = Field(
        default_factory=SuccessFailureTally, alias="successFailureTally"
    )


class TargetBucket(_BucketModel):
    count: int = 0
    login_attempts: List[TargetLoginAttempt] = Field(default_factory=list, alias="loginAttempts")
