"""Core data types for the Y8 bridge."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Generic, TypeVar

T = TypeVar("T")


# ---------------------------------------------------------------------------
# RequestKind
# ---------------------------------------------------------------------------


class RequestKind(str, Enum):
    """Wire name of a request; selects the response shape and success rule."""

    AUTO_LOGIN = "auto_login"
    LOGIN = "login"
    REGISTER = "register"
    SHOW_AD = "show_ad"
    ACHIEVEMENT_LIST = "achievement_list"
    ACHIEVEMENT_SAVE = "achievement_save"
    TABLES = "tables"
    CUSTOM_SCORE = "custom_score"
    SCORE_LIST = "score_list"
    SCORE_SAVE = "score_save"
    APP_REQUEST = "app_request"
    FRIEND_REQUEST = "friend_request"
    SHARE = "share"
    SET_DATA = "set_data"
    GET_DATA = "get_data"
    CLEAR_DATA = "clear_data"
    BLACKLIST = "blacklist"
    SPONSOR = "sponsor"
    SAVE_SCREENSHOT = "save_screenshot"

    @property
    def is_auth(self) -> bool:
        return self in AUTH_KINDS


AUTH_KINDS = frozenset(
    {RequestKind.AUTO_LOGIN, RequestKind.LOGIN, RequestKind.REGISTER}
)

# Dialogs and menus whose response carries nothing but completion.
COMMAND_KINDS = frozenset(
    {
        RequestKind.SHOW_AD,
        RequestKind.SHARE,
        RequestKind.SCORE_LIST,
        RequestKind.APP_REQUEST,
        RequestKind.FRIEND_REQUEST,
        RequestKind.ACHIEVEMENT_LIST,
    }
)


# ---------------------------------------------------------------------------
# Response
# ---------------------------------------------------------------------------


@dataclass
class Response(Generic[T]):
    """Outcome of one bridged call.

    ``success`` follows the per-kind rule of the decoder; ``data`` holds the
    decoded payload (or the raw body when it could not be decoded).
    ``error`` is set only for failures detected on this side of the bridge.
    """

    success: bool
    data: T | None = None
    call_id: int | None = None
    error: str | None = None

    @classmethod
    def failed(cls, error: str, call_id: int | None = None) -> Response[Any]:
        return cls(success=False, data=None, call_id=call_id, error=error)


# ---------------------------------------------------------------------------
# Authorisation (session snapshot)
# ---------------------------------------------------------------------------


@dataclass
class TrustDetails:
    email: str | None = None
    mobile: bool = False
    certification: bool = False


@dataclass
class Avatars:
    thumb_url: str | None = None
    thumb_secure_url: str | None = None
    medium_url: str | None = None
    medium_secure_url: str | None = None
    large_url: str | None = None
    large_secure_url: str | None = None


@dataclass
class RiskElement:
    risk: str | None = None
    real_ip: str | None = None
    request_ip: str | None = None


@dataclass
class Risk:
    registration: RiskElement | None = None
    login: RiskElement | None = None


@dataclass
class Details:
    pid: str | None = None
    nickname: str | None = None
    first_name: str | None = None
    dob: str | None = None
    gender: str | None = None
    language: str | None = None
    locale: str | None = None
    level: int = 0
    version: str | None = None
    trust_details: TrustDetails | None = None
    avatars: Avatars | None = None
    risk: Risk | None = None


@dataclass
class AuthResponse:
    access_token: str | None = None
    token_type: str | None = None
    expires_in: int = 0
    state: str | None = None
    score: str | None = None
    redirect_uri: str | None = None
    details: Details | None = None


@dataclass
class Authorisation:
    """Payload of an auth-kind response; the session snapshot."""

    status: str = ""
    authResponse: AuthResponse | None = None


# ---------------------------------------------------------------------------
# Domain payloads
# ---------------------------------------------------------------------------


@dataclass
class AchievementSave:
    name: str = ""
    unlocked: bool = False
    errorcode: int = 0
    success: bool = False
    errormessage: str = ""


@dataclass
class ScoreSave:
    errorcode: int = 0
    success: bool = False
    errormessage: str = ""


@dataclass
class SetData:
    status: str = ""
    key: str = ""


@dataclass
class GetData:
    error: str = ""
    key: str = ""
    jsondata: str = ""


@dataclass
class Score:
    table: str = ""
    playerid: str = ""
    playername: str = ""
    appid: str = ""
    tableid: str = ""
    points: int = 0
    fields: Any = None
    lastupdated: int = 0
    date: int = 0
    rank: int = 0
    scoreid: str = ""
    rdate: str = ""


@dataclass
class ScoreTable:
    scores: list[Score] = field(default_factory=list)
    numscores: int = 0
    mode: str = ""
    errorcode: int = 0
    success: bool = False


@dataclass
class ScoreTables:
    tables: list[str] = field(default_factory=list)
    errorcode: int = 0
    success: bool = False


@dataclass
class Screenshot:
    image: str = ""
    error: str = ""
