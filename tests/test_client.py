"""Tests for the Y8 bridge client."""

from __future__ import annotations

import asyncio
import base64
import json

import pytest

from conftest import AUTH_JSON, FakeSdk, settle
from y8_bridge import Y8AsyncClient, Y8Client, Y8Settings
from y8_bridge.types import Authorisation, RequestKind, Response


# ---------------------------------------------------------------------------
# Readiness
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_calls_wait_for_ready(sdk: FakeSdk, settings: Y8Settings):
    client = Y8AsyncClient(sdk, settings)
    first = asyncio.create_task(client.is_sponsor())
    second = asyncio.create_task(client.is_blacklisted())
    await settle()

    assert sdk.inits == [("app-1", "ads-1")]
    assert sdk.calls == []

    client.router.on_ready()
    await settle()
    assert [c[1] for c in sdk.calls] == ["sponsor", "blacklist"]

    client.router.on_response(f"sponsor[{sdk.calls[0][0]}]=true")
    client.router.on_response(f"blacklist[{sdk.calls[1][0]}]=false")
    assert (await first).data is True
    assert (await second).data is False


@pytest.mark.asyncio
async def test_start_inits_once(sdk: FakeSdk, settings: Y8Settings):
    client = Y8AsyncClient(sdk, settings)
    client.start()
    task = asyncio.create_task(client.show_achievement_list())
    await settle()
    assert len(sdk.inits) == 1

    client.router.on_ready()
    await settle()
    client.router.on_response(f"achievement_list[{sdk.last_id}]=")
    assert (await task).success


# ---------------------------------------------------------------------------
# Auth
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_login(client: Y8AsyncClient, sdk: FakeSdk):
    assert not client.session.is_logged_in()
    task = asyncio.create_task(client.login())
    await settle()

    call_id, request, payload = sdk.calls[0]
    assert (request, payload) == ("login", "")
    assert call_id == 10001

    client.router.on_auth_response(AUTH_JSON)
    result = await task
    assert result.success
    assert isinstance(result.data, Authorisation)
    assert result.call_id == call_id
    assert client.session.is_logged_in()
    assert client.session.nickname() == "Nick"


@pytest.mark.asyncio
async def test_auth_not_misattributed_to_later_call(
    client: Y8AsyncClient, sdk: FakeSdk
):
    login = asyncio.create_task(client.auto_login())
    await settle()
    tables = asyncio.create_task(client.get_table_names())
    await settle()
    login_id, tables_id = sdk.calls[0][0], sdk.calls[1][0]

    client.router.on_auth_response(AUTH_JSON)
    client.router.on_response(f'tables[{tables_id}]={{"tables":["t"],"errorcode":0}}')

    assert (await login).call_id == login_id
    assert (await tables).data.tables == ["t"]


@pytest.mark.asyncio
async def test_auth_calls_are_serialized(client: Y8AsyncClient, sdk: FakeSdk):
    first = asyncio.create_task(client.login())
    second = asyncio.create_task(client.register())
    await settle()
    assert [c[1] for c in sdk.calls] == ["login"]

    client.router.on_auth_response('{"status":"not_linked"}')
    assert not (await first).success
    await settle()
    assert [c[1] for c in sdk.calls] == ["login", "register"]

    client.router.on_auth_response(AUTH_JSON)
    assert (await second).success


# ---------------------------------------------------------------------------
# Preconditions
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_save_score_requires_login(client: Y8AsyncClient, sdk: FakeSdk):
    result = await client.save_score("table", 10)
    assert not result.success
    assert result.call_id is None
    assert result.error == "player is not logged in"
    assert sdk.calls == []
    assert client.calls.last_id == 10000


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "operation",
    [
        lambda c: c.save_achievement("a", "k"),
        lambda c: c.set_data("k", "v"),
        lambda c: c.get_data("k"),
        lambda c: c.clear_data("k"),
        lambda c: c.save_screenshot(b"png"),
    ],
)
async def test_login_required_operations(
    client: Y8AsyncClient, sdk: FakeSdk, operation
):
    result = await operation(client)
    assert not result.success
    assert sdk.calls == []


@pytest.mark.asyncio
async def test_show_ad_skipped_when_fullscreen(sdk: FakeSdk, settings: Y8Settings):
    client = Y8AsyncClient(sdk, settings, is_fullscreen=lambda: True)
    client.router.on_ready()
    result = await client.show_ad()
    assert not result.success
    assert sdk.calls == []


@pytest.mark.asyncio
async def test_show_ad_skipped_without_ads_id(sdk: FakeSdk):
    client = Y8AsyncClient(sdk, Y8Settings(app_id="app-1", ads_id="  ", _env_file=None))
    client.router.on_ready()
    assert not (await client.show_ad()).success
    assert sdk.calls == []


@pytest.mark.asyncio
async def test_show_ad(client: Y8AsyncClient, sdk: FakeSdk):
    task = asyncio.create_task(client.show_ad())
    await settle()
    client.router.on_response(f"show_ad[{sdk.last_id}]=")
    assert (await task).success


# ---------------------------------------------------------------------------
# Payloads
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_save_score_payload(logged_in: Y8AsyncClient, sdk: FakeSdk):
    task = asyncio.create_task(logged_in.save_score("best", 3001))
    await settle()
    call_id, request, payload = sdk.calls[0]
    assert request == "score_save"
    assert payload == (
        '{ "table":"best", "points":3001, "allowduplicates":false, '
        '"highest":true, "playername":"Nick" }'
    )

    logged_in.router.on_response(
        f'score_save[{call_id}]={{"success":true,"errorcode":0}}'
    )
    assert (await task).success


@pytest.mark.asyncio
async def test_custom_score_optional_player_id(client: Y8AsyncClient, sdk: FakeSdk):
    asyncio.create_task(client.get_custom_score("t"))
    asyncio.create_task(
        client.get_custom_score(
            "t", mode="today", per_page=5, page=2, highest=False, player_id="p"
        )
    )
    await settle()
    assert json.loads(sdk.calls[0][2]) == {
        "table": "t",
        "mode": "alltime",
        "perPage": 20,
        "page": 1,
        "highest": True,
    }
    assert json.loads(sdk.calls[1][2]) == {
        "table": "t",
        "mode": "today",
        "perPage": 5,
        "page": 2,
        "highest": False,
        "playerid": "p",
    }
    for call_id, _, _ in sdk.calls:
        client.router.on_response(f'custom_score[{call_id}]={{"errorcode":0}}')
    await settle()


@pytest.mark.asyncio
async def test_score_list_use_milli_only_when_true(client: Y8AsyncClient, sdk: FakeSdk):
    asyncio.create_task(client.show_score_list("t"))
    asyncio.create_task(client.show_score_list("t", use_milli=True))
    await settle()
    assert "useMilli" not in sdk.calls[0][2]
    assert json.loads(sdk.calls[1][2])["useMilli"] is True
    for call_id, _, _ in sdk.calls:
        client.router.on_response(f"score_list[{call_id}]=")
    await settle()


@pytest.mark.asyncio
async def test_dialog_payloads(client: Y8AsyncClient, sdk: FakeSdk):
    asyncio.create_task(client.app_request("Play with me!", "https://y8.com", "x"))
    asyncio.create_task(client.friend_request("574da07e"))
    asyncio.create_task(client.share("http://l", "desc", name="n"))
    await settle()
    methods = [json.loads(payload)["method"] for _, _, payload in sdk.calls]
    assert methods == ["apprequests", "friends", "feed"]
    assert json.loads(sdk.calls[1][2]) == {
        "method": "friends",
        "id": "574da07e",
        "redirect_uri": "",
    }
    for call_id, request, _ in sdk.calls:
        client.router.on_response(f"{request}[{call_id}]=")
    await settle()
    assert client.calls.pending == 0


@pytest.mark.asyncio
async def test_save_screenshot(logged_in: Y8AsyncClient, sdk: FakeSdk):
    task = asyncio.create_task(logged_in.save_screenshot(b"\x89PNG"))
    await settle()
    image = json.loads(sdk.calls[0][2])["image"]
    assert image == "data:image/png;base64," + base64.b64encode(b"\x89PNG").decode()

    logged_in.router.on_response(
        f'save_screenshot[{sdk.last_id}]={{"image":"http://img/s.png"}}'
    )
    result = await task
    assert result.success and result.data.image == "http://img/s.png"


# ---------------------------------------------------------------------------
# Online saves
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_get_data_unwraps_value(logged_in: Y8AsyncClient, sdk: FakeSdk):
    task = asyncio.create_task(logged_in.get_data("k"))
    await settle()
    assert sdk.calls[0][1:] == ("get_data", '{ "key":"k" }')

    logged_in.router.on_response(
        f'get_data[{sdk.last_id}]={{"error":"","key":"k","jsondata":"\\"hello\\""}}'
    )
    result = await task
    assert result.success
    assert result.data.jsondata == "hello"


@pytest.mark.asyncio
async def test_set_and_clear_data(logged_in: Y8AsyncClient, sdk: FakeSdk):
    set_task = asyncio.create_task(logged_in.set_data("k", 'say "hi"'))
    clear_task = asyncio.create_task(logged_in.clear_data("k"))
    await settle()
    assert sdk.calls[0][2] == '{ "key":"k", "value":"say \\"hi\\"" }'

    set_id, clear_id = sdk.calls[0][0], sdk.calls[1][0]
    logged_in.router.on_response(f'set_data[{set_id}]={{"status":"ok","key":"k"}}')
    logged_in.router.on_response(
        f'clear_data[{clear_id}]={{"status":"fail","key":"k"}}'
    )
    assert (await set_task).success
    assert not (await clear_task).success


# ---------------------------------------------------------------------------
# Correlation
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_out_of_order_responses(logged_in: Y8AsyncClient, sdk: FakeSdk):
    first = asyncio.create_task(logged_in.get_data("a"))
    second = asyncio.create_task(logged_in.get_data("b"))
    await settle()
    first_id, second_id = sdk.calls[0][0], sdk.calls[1][0]
    assert second_id > first_id

    logged_in.router.on_response(
        f'get_data[{second_id}]={{"error":"","key":"b","jsondata":"\\"B\\""}}'
    )
    logged_in.router.on_response(
        f'get_data[{first_id}]={{"error":"","key":"a","jsondata":"\\"A\\""}}'
    )

    assert (await first).data.jsondata == "A"
    assert (await second).data.jsondata == "B"
    assert logged_in.calls.pending == 0


@pytest.mark.asyncio
async def test_duplicate_response_is_dropped(client: Y8AsyncClient, sdk: FakeSdk):
    task = asyncio.create_task(client.is_sponsor())
    await settle()
    client.router.on_response(f"sponsor[{sdk.last_id}]=true")
    client.router.on_response(f"sponsor[{sdk.last_id}]=false")
    assert (await task).data is True


@pytest.mark.asyncio
async def test_sdk_failure_unregisters_call(settings: Y8Settings):
    class BrokenSdk(FakeSdk):
        def call(self, call_id: int, request: str, payload: str) -> None:
            raise RuntimeError("bridge down")

    client = Y8AsyncClient(BrokenSdk(), settings)
    client.router.on_ready()
    with pytest.raises(RuntimeError):
        await client.login()
    assert client.calls.pending == 0
    assert client.router.auth_call_id is None


# ---------------------------------------------------------------------------
# Low level send
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_send_with_callback(client: Y8AsyncClient, sdk: FakeSdk):
    received: list[Response] = []
    call_id = await client.send(RequestKind.TABLES, callback=received.append)
    assert sdk.calls == [(call_id, "tables", "")]

    client.router.on_response(f'tables[{call_id}]={{"tables":[],"errorcode":0}}')
    assert received[0].success
    assert received[0].call_id == call_id


@pytest.mark.asyncio
async def test_send_rejects_auth_kinds(client: Y8AsyncClient):
    with pytest.raises(ValueError):
        await client.send(RequestKind.LOGIN)


# ---------------------------------------------------------------------------
# Callback wrapper
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_callback_client(client: Y8AsyncClient, sdk: FakeSdk):
    wrapper = Y8Client(client)
    received: list[Response] = []

    login = wrapper.login(received.append)
    await settle()
    wrapper.router.on_auth_response(AUTH_JSON)
    await login
    await settle()
    assert received[0].success
    assert wrapper.is_logged_in()

    save = wrapper.save_score("t", 5, received.append, player_name="Other")
    await settle()
    assert json.loads(sdk.calls[-1][2])["playername"] == "Other"
    wrapper.router.on_response(
        f'score_save[{sdk.last_id}]={{"success":false,"errorcode":4}}'
    )
    await save
    await settle()
    assert not received[1].success
    assert received[1].data.errorcode == 4


@pytest.mark.asyncio
async def test_callback_client_precondition_failure(
    client: Y8AsyncClient, sdk: FakeSdk
):
    wrapper = Y8Client(client)
    received: list[Response] = []
    await wrapper.set_data("k", "v", received.append)
    await settle()
    assert not received[0].success
    assert sdk.calls == []


@pytest.mark.asyncio
async def test_callback_client_reports_sdk_failure(settings: Y8Settings):
    class BrokenSdk(FakeSdk):
        def call(self, call_id: int, request: str, payload: str) -> None:
            raise RuntimeError("bridge down")

    client = Y8AsyncClient(BrokenSdk(), settings)
    client.router.on_ready()
    wrapper = Y8Client(client)
    received: list[Response] = []

    task = wrapper.get_table_names(received.append)
    with pytest.raises(RuntimeError):
        await task
    await settle()
    assert len(received) == 1
    assert not received[0].success
    assert received[0].error == "bridge down"
