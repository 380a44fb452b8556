"""Y8 bridge: typed, correlated async calls into the Y8 JavaScript SDK."""

from .client import Y8AsyncClient, Y8Client
from .config import Y8Settings, get_settings
from .errors import DuplicateCallError, MalformedEnvelopeError, RelayError, Y8Error
from .router import Y8Router
from .transport import HttpRelay, SdkPort
from .types import (
    AchievementSave,
    Authorisation,
    GetData,
    RequestKind,
    Response,
    Score,
    ScoreSave,
    ScoreTable,
    ScoreTables,
    Screenshot,
    SetData,
)

__all__ = [
    "Y8AsyncClient",
    "Y8Client",
    "Y8Router",
    "Y8Settings",
    "get_settings",
    "SdkPort",
    "HttpRelay",
    "Y8Error",
    "MalformedEnvelopeError",
    "DuplicateCallError",
    "RelayError",
    "RequestKind",
    "Response",
    "Authorisation",
    "AchievementSave",
    "ScoreSave",
    "SetData",
    "GetData",
    "Score",
    "ScoreTable",
    "ScoreTables",
    "Screenshot",
]
