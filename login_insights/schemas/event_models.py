from typing import List, Literal, Union

from pydantic import BaseModel, ConfigDict, Field

LOGON_SUCCESS = "Logon-Success"
LOGON_FAILURE = "Logon-Failure"

LoginAction = Literal["Logon-Success", "Logon-Failure"]
EventId = Union[int, str]

# Canonical raw fields resolved through config/event_source.yaml aliases.
RAW_FIELDS = [
    "id",         # numeric or string identifier
    "timestamp",  # epoch seconds
    "action",     # free-text outcome, e.g. "Login success"
    "user_name",  # identity, sometimes prefixed with "Username is:"
    "target",     # target host
    "ips",        # non-empty list of source IPs, first one wins
]


class RawEvent(BaseModel):
    id: EventId
    timestamp: float
    action: str
    user_name: str
    target: str
    ips: List[str] = Field(min_length=1)


class NormalizedEvent(BaseModel):
    """One login attempt in canonical shape.

    Serialized (by alias) with exactly the keys of the download artifact:
    id, userName, sourceIp, target, action, eventTime.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: EventId
    user_name: str = Field(alias="userName")
    source_ip: str = Field(alias="sourceIp")
    target: str
    action: LoginAction
    event_time: str = Field(alias="eventTime")
