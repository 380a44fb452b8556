"""
Wire codec for the Y8 bridge.

Requests travel to the JS SDK as a single-line JSON object built from
ordered key/value pairs. Responses come back as ``<kind>[<id>]=<body>``
envelopes whose body is decoded by a per-kind rule into a typed payload
and a success flag.
"""

from __future__ import annotations

import json
import math
from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Callable, Iterable, Mapping

from loguru import logger

from .errors import MalformedEnvelopeError
from .types import (
    AUTH_KINDS,
    COMMAND_KINDS,
    AchievementSave,
    Authorisation,
    AuthResponse,
    Avatars,
    Details,
    GetData,
    RequestKind,
    Response,
    Risk,
    RiskElement,
    Score,
    ScoreSave,
    ScoreTable,
    ScoreTables,
    Screenshot,
    SetData,
    TrustDetails,
)

Scalar = str | bool | int | float
Pairs = Iterable[tuple[str, Scalar]]


# ---------------------------------------------------------------------------
# Encoding
# ---------------------------------------------------------------------------


def encode_payload(pairs: Pairs | None) -> str:
    """Encode ordered pairs as ``{ "k1":v1, "k2":v2 }``.

    No pairs encode to ``""``, which the SDK reads as "no payload" (unlike
    ``{}``). Key order is preserved.
    """
    if pairs is None:
        return ""
    items = [
        f"{json.dumps(str(key), ensure_ascii=False)}:{_encode_scalar(value)}"
        for key, value in pairs
    ]
    if not items:
        return ""
    return "{ " + ", ".join(items) + " }"


def _encode_scalar(value: Scalar) -> str:
    # bool first: it is a subclass of int
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, int):
        return str(int(value))
    if isinstance(value, float):
        if not math.isfinite(value):
            raise ValueError(f"cannot encode non-finite number {value!r}")
        # positional notation, never exponents: 1e20 -> 100000000000000000000
        return format(Decimal(repr(value)), "f")
    if isinstance(value, str):
        return json.dumps(value, ensure_ascii=False)
    raise TypeError(f"unsupported payload value {value!r} ({type(value).__name__})")


# ---------------------------------------------------------------------------
# Envelopes
# ---------------------------------------------------------------------------


def parse_envelope(raw: str) -> tuple[str, int, str]:
    """Split ``<kind>[<id>]=<body>`` into its parts.

    Only the first ``[`` and the first ``]`` after it are delimiters; the
    body may contain brackets of its own.
    """
    open_at = raw.find("[")
    if open_at < 0:
        raise MalformedEnvelopeError(raw, "missing '['")
    close_at = raw.find("]", open_at + 1)
    if close_at < 0:
        raise MalformedEnvelopeError(raw, "missing ']'")
    try:
        call_id = int(raw[open_at + 1 : close_at])
    except ValueError:
        raise MalformedEnvelopeError(raw, "call id is not an integer") from None
    # one separator character ('=') sits between ']' and the body
    return raw[:open_at], call_id, raw[close_at + 2 :]


def unwrap_json_string(value: str) -> str:
    """Strip one layer of JSON string encoding from a stored value.

    ``"\\"hello\\""`` becomes ``hello``.
    """
    if len(value) >= 2 and value[0] == '"' and value[-1] == '"':
        value = value[1:-1]
    return value.replace('\\"', '"')


# ---------------------------------------------------------------------------
# Decoding
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class _Rule:
    parse: Callable[[str], Any]
    succeeded: Callable[[Any], bool]


def auth_succeeded(auth: Authorisation | None) -> bool:
    """True when the snapshot carries profile details with a non-empty pid."""
    return bool(
        auth is not None
        and auth.authResponse is not None
        and auth.authResponse.details is not None
        and auth.authResponse.details.pid
    )


def decode(kind: RequestKind | str, body: str) -> Response[Any]:
    """Decode a response body according to the rule for ``kind``.

    Never raises: unknown kinds and undecodable bodies produce a failed
    response carrying the raw body.
    """
    rule = _RULES.get(_as_kind(kind))
    if rule is None:
        logger.warning("y8.decode unhandled request kind={} body={}", kind, body)
        return Response(
            success=False, data=body, error=f"unhandled request kind: {kind}"
        )
    try:
        data = rule.parse(body)
    except (ValueError, TypeError) as exc:
        logger.warning(
            "y8.decode undecodable body kind={} error={} body={}", kind, exc, body
        )
        return Response(success=False, data=body, error=f"undecodable response: {exc}")
    return Response(success=rule.succeeded(data), data=data)


def decode_auth(body: str) -> Response[Authorisation]:
    """Decode an auth response; an unreadable body yields an empty snapshot."""
    try:
        auth = _json_object(_parse_authorisation)(body)
    except (ValueError, TypeError) as exc:
        logger.warning("y8.decode undecodable auth body error={} body={}", exc, body)
        return Response(
            success=False, data=Authorisation(), error=f"undecodable response: {exc}"
        )
    return Response(success=auth_succeeded(auth), data=auth)


def _as_kind(kind: RequestKind | str) -> RequestKind | None:
    if isinstance(kind, RequestKind):
        return kind
    try:
        return RequestKind(kind)
    except ValueError:
        return None


def _json_object(parser: Callable[[Mapping[str, Any]], Any]) -> Callable[[str], Any]:
    def parse(body: str) -> Any:
        data = json.loads(body)
        if not isinstance(data, dict):
            raise TypeError(f"expected a JSON object, got {type(data).__name__}")
        return parser(data)

    return parse


def _parse_nothing(body: str) -> None:
    return None


def _parse_flag(body: str) -> bool:
    return body.strip().lower() == "true"


def _always(data: Any) -> bool:
    return True


def _errorcode_is_zero(data: Any) -> bool:
    return data.errorcode == 0


def _build_rules() -> dict[RequestKind, _Rule]:
    rules: dict[RequestKind, _Rule] = {}
    for kind in AUTH_KINDS:
        rules[kind] = _Rule(_json_object(_parse_authorisation), auth_succeeded)
    for kind in COMMAND_KINDS:
        rules[kind] = _Rule(_parse_nothing, _always)

    rules[RequestKind.ACHIEVEMENT_SAVE] = _Rule(
        _json_object(_parse_achievement_save), lambda d: d.success
    )
    rules[RequestKind.SCORE_SAVE] = _Rule(
        _json_object(_parse_score_save), lambda d: d.success
    )

    set_data = _Rule(_json_object(_parse_set_data), lambda d: d.status == "ok")
    rules[RequestKind.SET_DATA] = set_data
    rules[RequestKind.CLEAR_DATA] = set_data

    rules[RequestKind.GET_DATA] = _Rule(
        _json_object(_parse_get_data), lambda d: not d.error
    )
    rules[RequestKind.CUSTOM_SCORE] = _Rule(
        _json_object(_parse_score_table), _errorcode_is_zero
    )
    rules[RequestKind.TABLES] = _Rule(
        _json_object(_parse_score_tables), _errorcode_is_zero
    )

    rules[RequestKind.BLACKLIST] = _Rule(_parse_flag, _always)
    rules[RequestKind.SPONSOR] = _Rule(_parse_flag, _always)

    rules[RequestKind.SAVE_SCREENSHOT] = _Rule(
        _json_object(_parse_screenshot), lambda d: bool(d.image) and not d.error
    )
    return rules


# ---------------------------------------------------------------------------
# Parsers
# ---------------------------------------------------------------------------


def _str(data: Mapping[str, Any], key: str, default: Any = "") -> Any:
    value = data.get(key)
    if value is None:
        return default
    return value if isinstance(value, str) else str(value)


def _int(data: Mapping[str, Any], key: str) -> int:
    value = data.get(key)
    if value is None or value == "":
        return 0
    return int(value)


def _obj(data: Mapping[str, Any], key: str) -> Mapping[str, Any] | None:
    value = data.get(key)
    return value if isinstance(value, dict) else None


def _parse_authorisation(data: Mapping[str, Any]) -> Authorisation:
    auth_response = _obj(data, "authResponse")
    return Authorisation(
        status=_str(data, "status"),
        authResponse=_parse_auth_response(auth_response)
        if auth_response is not None
        else None,
    )


def _parse_auth_response(data: Mapping[str, Any]) -> AuthResponse:
    details = _obj(data, "details")
    return AuthResponse(
        access_token=_str(data, "access_token", None),
        token_type=_str(data, "token_type", None),
        expires_in=_int(data, "expires_in"),
        state=_str(data, "state", None),
        score=_str(data, "score", None),
        redirect_uri=_str(data, "redirect_uri", None),
        details=_parse_details(details) if details is not None else None,
    )


def _parse_details(data: Mapping[str, Any]) -> Details:
    trust = _obj(data, "trust_details")
    avatars = _obj(data, "avatars")
    risk = _obj(data, "risk")
    return Details(
        pid=_str(data, "pid", None),
        nickname=_str(data, "nickname", None),
        first_name=_str(data, "first_name", None),
        dob=_str(data, "dob", None),
        gender=_str(data, "gender", None),
        language=_str(data, "language", None),
        locale=_str(data, "locale", None),
        level=_int(data, "level"),
        version=_str(data, "version", None),
        trust_details=TrustDetails(
            email=_str(trust, "email", None),
            mobile=bool(trust.get("mobile", False)),
            certification=bool(trust.get("certification", False)),
        )
        if trust is not None
        else None,
        avatars=Avatars(
            **{k: _str(avatars, k, None) for k in Avatars.__dataclass_fields__}
        )
        if avatars is not None
        else None,
        risk=_parse_risk(risk) if risk is not None else None,
    )


def _parse_risk(data: Mapping[str, Any]) -> Risk:
    def element(key: str) -> RiskElement | None:
        value = _obj(data, key)
        if value is None:
            return None
        return RiskElement(
            risk=_str(value, "risk", None),
            real_ip=_str(value, "real_ip", None),
            request_ip=_str(value, "request_ip", None),
        )

    return Risk(registration=element("registration"), login=element("login"))


def _parse_achievement_save(data: Mapping[str, Any]) -> AchievementSave:
    return AchievementSave(
        name=_str(data, "name"),
        unlocked=bool(data.get("unlocked", False)),
        errorcode=_int(data, "errorcode"),
        success=data.get("success") is True,
        errormessage=_str(data, "errormessage"),
    )


def _parse_score_save(data: Mapping[str, Any]) -> ScoreSave:
    return ScoreSave(
        errorcode=_int(data, "errorcode"),
        success=data.get("success") is True,
        errormessage=_str(data, "errormessage"),
    )


def _parse_set_data(data: Mapping[str, Any]) -> SetData:
    return SetData(status=_str(data, "status"), key=_str(data, "key"))


def _parse_get_data(data: Mapping[str, Any]) -> GetData:
    error = _str(data, "error")
    raw = data.get("jsondata")
    if raw is None:
        jsondata = ""
    elif isinstance(raw, str):
        jsondata = raw
    else:
        jsondata = json.dumps(raw)
    if not error:
        jsondata = unwrap_json_string(jsondata)
    return GetData(error=error, key=_str(data, "key"), jsondata=jsondata)


def _parse_score(data: Mapping[str, Any]) -> Score:
    return Score(
        table=_str(data, "table"),
        playerid=_str(data, "playerid"),
        playername=_str(data, "playername"),
        appid=_str(data, "appid"),
        tableid=_str(data, "tableid"),
        points=_int(data, "points"),
        fields=data.get("fields"),
        lastupdated=_int(data, "lastupdated"),
        date=_int(data, "date"),
        rank=_int(data, "rank"),
        scoreid=_str(data, "scoreid"),
        rdate=_str(data, "rdate"),
    )


def _parse_score_table(data: Mapping[str, Any]) -> ScoreTable:
    return ScoreTable(
        scores=[
            _parse_score(s) for s in data.get("scores") or [] if isinstance(s, dict)
        ],
        numscores=_int(data, "numscores"),
        mode=_str(data, "mode"),
        errorcode=_int(data, "errorcode"),
        success=data.get("success") is True,
    )


def _parse_score_tables(data: Mapping[str, Any]) -> ScoreTables:
    return ScoreTables(
        tables=[str(t) for t in data.get("tables") or []],
        errorcode=_int(data, "errorcode"),
        success=data.get("success") is True,
    )


def _parse_screenshot(data: Mapping[str, Any]) -> Screenshot:
    return Screenshot(image=_str(data, "image"), error=_str(data, "error"))


_RULES = _build_rules()
