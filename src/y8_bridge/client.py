"""
Y8 bridge client, async-first with a callback wrapper.

Every operation waits for the SDK to be ready, sends one request through
the SDK port and awaits the response correlated to its call id.
"""

from __future__ import annotations

import asyncio
import base64
from typing import Any, Callable

from loguru import logger

from .codec import Pairs, encode_payload
from .config import Y8Settings
from .readiness import ReadinessGate
from .registry import Callback, PendingCalls
from .router import Y8Router
from .session import SessionState
from .transport import SdkPort
from .types import (
    AchievementSave,
    Authorisation,
    GetData,
    RequestKind,
    Response,
    ScoreSave,
    ScoreTable,
    ScoreTables,
    Screenshot,
    SetData,
)


# ---------------------------------------------------------------------------
# Async client
# ---------------------------------------------------------------------------


class Y8AsyncClient:
    """Async client for the Y8 JS SDK.

    Owns the pending-call table, the session snapshot and the readiness
    gate. The SDK side delivers into :attr:`router`.
    """

    def __init__(
        self,
        sdk: SdkPort,
        settings: Y8Settings | None = None,
        is_fullscreen: Callable[[], bool] | None = None,
    ) -> None:
        self.settings = settings if settings is not None else Y8Settings()
        self._sdk = sdk
        self._is_fullscreen = is_fullscreen or (lambda: False)
        self.calls = PendingCalls(self.settings.first_call_id)
        self.session = SessionState()
        self.gate = ReadinessGate(self._init_sdk)
        self.router = Y8Router(self.calls, self.session, self.gate)
        # auth responses carry no call id: one auth call at a time
        self._auth_lock = asyncio.Lock()

    def start(self) -> None:
        """Begin SDK init now instead of on the first call."""
        self.gate.start()

    def _init_sdk(self) -> None:
        logger.info(
            "y8.init app_id={} ads={}", self.settings.app_id, bool(self.settings.ads_id)
        )
        self._sdk.init(self.settings.app_id, self.settings.ads_id)

    # --- Auth ---

    async def auto_login(self) -> Response[Authorisation]:
        return await self._call(RequestKind.AUTO_LOGIN)

    async def login(self) -> Response[Authorisation]:
        return await self._call(RequestKind.LOGIN)

    async def register(self) -> Response[Authorisation]:
        """Open the registration menu; closes at once if already logged in."""
        return await self._call(RequestKind.REGISTER)

    # --- Ads ---

    async def show_ad(self) -> Response[None]:
        if self._is_fullscreen():
            logger.info("y8.show_ad skipped: running fullscreen")
            return Response.failed("running fullscreen")
        if not self.settings.ads_id:
            logger.info("y8.show_ad skipped: ads id is not configured")
            return Response.failed("ads id is not configured")
        return await self._call(RequestKind.SHOW_AD)

    # --- Achievements ---

    async def show_achievement_list(self) -> Response[None]:
        return await self._call(RequestKind.ACHIEVEMENT_LIST)

    async def save_achievement(
        self,
        achievement: str,
        achievement_key: str,
        overwrite: bool = False,
        allow_duplicates: bool = False,
    ) -> Response[AchievementSave]:
        """Unlock an achievement.

        ``achievement`` and ``achievement_key`` must match the values on the
        app's achievements page exactly.
        """
        if not self.session.is_logged_in():
            return self._not_logged_in(RequestKind.ACHIEVEMENT_SAVE)
        return await self._call(
            RequestKind.ACHIEVEMENT_SAVE,
            [
                ("achievement", achievement),
                ("achievementkey", achievement_key),
                ("overwrite", overwrite),
                ("allowduplicates", allow_duplicates),
            ],
        )

    # --- Scores ---

    async def get_table_names(self) -> Response[ScoreTables]:
        return await self._call(RequestKind.TABLES)

    async def get_custom_score(
        self,
        table: str,
        mode: str = "alltime",
        per_page: int = 20,
        page: int = 1,
        highest: bool = True,
        player_id: str = "",
    ) -> Response[ScoreTable]:
        """Fetch score data for a custom high score menu.

        ``mode`` is one of alltime, last30days, last7days, today or newest.
        """
        pairs: list[tuple[str, Any]] = [
            ("table", table),
            ("mode", mode),
            ("perPage", per_page),
            ("page", page),
            ("highest", highest),
        ]
        if player_id:
            pairs.append(("playerid", player_id))
        return await self._call(RequestKind.CUSTOM_SCORE, pairs)

    async def show_score_list(
        self,
        table_title: str,
        mode: str = "alltime",
        highest: bool = True,
        use_milli: bool = False,
    ) -> Response[None]:
        pairs: list[tuple[str, Any]] = [
            ("table", table_title),
            ("mode", mode),
            ("highest", highest),
        ]
        # the SDK renders milliseconds whenever the key is present, even if false
        if use_milli:
            pairs.append(("useMilli", True))
        return await self._call(RequestKind.SCORE_LIST, pairs)

    async def save_score(
        self,
        table: str,
        points: int,
        allow_duplicates: bool = False,
        highest: bool = True,
        player_name: str | None = None,
    ) -> Response[ScoreSave]:
        if not self.session.is_logged_in():
            return self._not_logged_in(RequestKind.SCORE_SAVE)
        return await self._call(
            RequestKind.SCORE_SAVE,
            [
                ("table", table),
                ("points", points),
                ("allowduplicates", allow_duplicates),
                ("highest", highest),
                (
                    "playername",
                    player_name if player_name is not None else self.session.nickname(),
                ),
            ],
        )

    # --- Social dialogs ---

    async def app_request(
        self, message: str, redirect_uri: str = "", data: str = ""
    ) -> Response[None]:
        return await self._call(
            RequestKind.APP_REQUEST,
            [
                ("method", "apprequests"),
                ("message", message),
                ("redirect_uri", redirect_uri),
                ("data", data),
            ],
        )

    async def friend_request(
        self, target_id: str, redirect_uri: str = ""
    ) -> Response[None]:
        return await self._call(
            RequestKind.FRIEND_REQUEST,
            [
                ("method", "friends"),
                ("id", target_id),
                ("redirect_uri", redirect_uri),
            ],
        )

    async def share(
        self,
        link: str,
        description: str,
        name: str = "",
        caption: str = "",
        picture: str = "",
    ) -> Response[None]:
        return await self._call(
            RequestKind.SHARE,
            [
                ("method", "feed"),
                ("link", link),
                ("description", description),
                ("name", name),
                ("caption", caption),
                ("picture", picture),
            ],
        )

    # --- Online saves ---

    async def set_data(self, key: str, value: str) -> Response[SetData]:
        if not self.session.is_logged_in():
            return self._not_logged_in(RequestKind.SET_DATA)
        return await self._call(RequestKind.SET_DATA, [("key", key), ("value", value)])

    async def get_data(self, key: str) -> Response[GetData]:
        if not self.session.is_logged_in():
            return self._not_logged_in(RequestKind.GET_DATA)
        return await self._call(RequestKind.GET_DATA, [("key", key)])

    async def clear_data(self, key: str) -> Response[SetData]:
        if not self.session.is_logged_in():
            return self._not_logged_in(RequestKind.CLEAR_DATA)
        return await self._call(RequestKind.CLEAR_DATA, [("key", key)])

    # --- Site checks ---

    async def is_blacklisted(self) -> Response[bool]:
        return await self._call(RequestKind.BLACKLIST)

    async def is_sponsor(self) -> Response[bool]:
        return await self._call(RequestKind.SPONSOR)

    # --- Screenshots ---

    async def save_screenshot(self, image: bytes) -> Response[Screenshot]:
        """Upload PNG bytes; the response holds the stored image URL."""
        if not self.session.is_logged_in():
            return self._not_logged_in(RequestKind.SAVE_SCREENSHOT)
        encoded = base64.b64encode(image).decode("ascii")
        return await self._call(
            RequestKind.SAVE_SCREENSHOT, [("image", f"data:image/png;base64,{encoded}")]
        )

    # --- Low level ---

    async def send(
        self,
        kind: RequestKind,
        pairs: Pairs | None = None,
        callback: Callback | None = None,
    ) -> int:
        """Dispatch without waiting; ``callback`` receives the response.

        Returns the call id. Auth kinds are not accepted here since their
        responses can only be matched to a call awaited through
        :meth:`login` and friends.
        """
        if kind.is_auth:
            raise ValueError(f"{kind.value} must be awaited through its client method")
        await self.gate.ensure_ready()
        return self._send(kind, encode_payload(pairs), callback or _ignore)

    async def _call(
        self, kind: RequestKind, pairs: Pairs | None = None
    ) -> Response[Any]:
        if kind.is_auth:
            async with self._auth_lock:
                return await self._await_response(kind, pairs)
        return await self._await_response(kind, pairs)

    async def _await_response(
        self, kind: RequestKind, pairs: Pairs | None
    ) -> Response[Any]:
        await self.gate.ensure_ready()
        payload = encode_payload(pairs)
        loop = asyncio.get_running_loop()
        future: asyncio.Future[Response[Any]] = loop.create_future()
        self._send(kind, payload, future)
        return await future

    def _send(self, kind: RequestKind, payload: str, waiter: Any) -> int:
        call_id = self.calls.mint()
        self.calls.register(call_id, waiter)
        if kind.is_auth:
            self.router.expect_auth(call_id)
        logger.info("y8.call id={} kind={} payload={}", call_id, kind.value, payload)
        try:
            self._sdk.call(call_id, kind.value, payload)
        except Exception:
            self.calls.discard(call_id)
            self.router.forget_auth(call_id)
            raise
        return call_id

    def _not_logged_in(self, kind: RequestKind) -> Response[Any]:
        logger.info("y8.{} skipped: player is not logged in", kind.value)
        return Response.failed("player is not logged in")


def _ignore(response: Response[Any]) -> None:
    return None


# ---------------------------------------------------------------------------
# Callback wrapper
# ---------------------------------------------------------------------------


class Y8Client:
    """Callback-style wrapper around Y8AsyncClient.

    Each method schedules the async operation on the event loop and returns
    the task; ``callback`` is invoked with the response once it completes.
    Must be used from code running on that loop.
    """

    def __init__(self, async_client: Y8AsyncClient) -> None:
        self._async = async_client
        self._tasks: set[asyncio.Task[Any]] = set()

    @property
    def router(self) -> Y8Router:
        return self._async.router

    @property
    def session(self) -> SessionState:
        return self._async.session

    def start(self) -> None:
        self._async.start()

    def is_logged_in(self) -> bool:
        return self._async.session.is_logged_in()

    def _run(self, coro: Any, callback: Callback | None) -> asyncio.Task[Any]:
        task = asyncio.get_running_loop().create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(lambda t: self._finish(t, callback))
        return task

    def _finish(self, task: asyncio.Task[Any], callback: Callback | None) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.opt(exception=exc).error("y8.callback operation failed")
            result: Response[Any] = Response.failed(str(exc))
        else:
            result = task.result()
        if callback is None:
            return
        try:
            callback(result)
        except Exception:
            logger.exception("y8.callback raised")

    # --- Auth ---

    def auto_login(self, callback: Callback | None = None) -> asyncio.Task[Any]:
        return self._run(self._async.auto_login(), callback)

    def login(self, callback: Callback | None = None) -> asyncio.Task[Any]:
        return self._run(self._async.login(), callback)

    def register(self, callback: Callback | None = None) -> asyncio.Task[Any]:
        return self._run(self._async.register(), callback)

    # --- Ads ---

    def show_ad(self, callback: Callback | None = None) -> asyncio.Task[Any]:
        return self._run(self._async.show_ad(), callback)

    # --- Achievements ---

    def show_achievement_list(
        self, callback: Callback | None = None
    ) -> asyncio.Task[Any]:
        return self._run(self._async.show_achievement_list(), callback)

    def save_achievement(
        self,
        achievement: str,
        achievement_key: str,
        callback: Callback | None = None,
        **kwargs: Any,
    ) -> asyncio.Task[Any]:
        return self._run(
            self._async.save_achievement(achievement, achievement_key, **kwargs),
            callback,
        )

    # --- Scores ---

    def get_table_names(self, callback: Callback | None = None) -> asyncio.Task[Any]:
        return self._run(self._async.get_table_names(), callback)

    def get_custom_score(
        self, table: str, callback: Callback | None = None, **kwargs: Any
    ) -> asyncio.Task[Any]:
        return self._run(self._async.get_custom_score(table, **kwargs), callback)

    def show_score_list(
        self, table_title: str, callback: Callback | None = None, **kwargs: Any
    ) -> asyncio.Task[Any]:
        return self._run(self._async.show_score_list(table_title, **kwargs), callback)

    def save_score(
        self, table: str, points: int, callback: Callback | None = None, **kwargs: Any
    ) -> asyncio.Task[Any]:
        return self._run(self._async.save_score(table, points, **kwargs), callback)

    # --- Social dialogs ---

    def app_request(
        self, message: str, callback: Callback | None = None, **kwargs: Any
    ) -> asyncio.Task[Any]:
        return self._run(self._async.app_request(message, **kwargs), callback)

    def friend_request(
        self, target_id: str, callback: Callback | None = None, **kwargs: Any
    ) -> asyncio.Task[Any]:
        return self._run(self._async.friend_request(target_id, **kwargs), callback)

    def share(
        self,
        link: str,
        description: str,
        callback: Callback | None = None,
        **kwargs: Any,
    ) -> asyncio.Task[Any]:
        return self._run(self._async.share(link, description, **kwargs), callback)

    # --- Online saves ---

    def set_data(
        self, key: str, value: str, callback: Callback | None = None
    ) -> asyncio.Task[Any]:
        return self._run(self._async.set_data(key, value), callback)

    def get_data(self, key: str, callback: Callback | None = None) -> asyncio.Task[Any]:
        return self._run(self._async.get_data(key), callback)

    def clear_data(
        self, key: str, callback: Callback | None = None
    ) -> asyncio.Task[Any]:
        return self._run(self._async.clear_data(key), callback)

    # --- Site checks ---

    def is_blacklisted(self, callback: Callback | None = None) -> asyncio.Task[Any]:
        return self._run(self._async.is_blacklisted(), callback)

    def is_sponsor(self, callback: Callback | None = None) -> asyncio.Task[Any]:
        return self._run(self._async.is_sponsor(), callback)

    # --- Screenshots ---

    def save_screenshot(
        self, image: bytes, callback: Callback | None = None
    ) -> asyncio.Task[Any]:
        return self._run(self._async.save_screenshot(image), callback)
