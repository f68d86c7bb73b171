from __future__ import annotations

import asyncio
import json
import threading
from datetime import UTC, datetime, timedelta
from typing import TYPE_CHECKING

import httpx
import pytest

from casetrack.adapters.http_resilience import ResilientClient
from casetrack.adapters.redelex import AuthTokenManager, UpstreamAuthError, UpstreamUnavailable
from casetrack.config import MissingConfigurationError
from casetrack.domain.model import ExternalToken
from tests.helpers.redelex import TOKEN_PATH, make_config, token_response

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

    from tests.helpers.cases import FakeCaseStore, FakeCaseUnitOfWork

NOW = datetime(2024, 3, 14, 15, 0, tzinfo=UTC)


def _clock() -> datetime:
    return NOW


def _make_http(handler: Callable[[httpx.Request], Awaitable[httpx.Response]]) -> ResilientClient:
    config = make_config()
    client = ResilientClient(config.resilience)
    client._client = httpx.AsyncClient(  # noqa: SLF001  # type: ignore[reportPrivateUsage]
        base_url=config.base_url,
        transport=httpx.MockTransport(handler),
    )
    return client


def _manager(
    http: ResilientClient,
    *,
    api_key: str | None = "key",
    unit_of_work_factory: Callable[[], FakeCaseUnitOfWork] | None = None,
) -> AuthTokenManager:
    return AuthTokenManager(
        api_key=api_key,
        http=http,
        unit_of_work_factory=unit_of_work_factory,
        clock=_clock,
    )


def test_concurrent_callers_share_one_exchange() -> None:
    exchanges: list[httpx.Request] = []

    async def handler(request: httpx.Request) -> httpx.Response:
        exchanges.append(request)
        await asyncio.sleep(0.01)
        return token_response("shared")

    async def scenario() -> list[str]:
        async with _make_http(handler) as http:
            manager = _manager(http)
            return list(await asyncio.gather(*(manager.get_valid_token() for _ in range(5))))

    tokens = asyncio.run(scenario())

    assert tokens == ["shared"] * 5
    assert len(exchanges) == 1
    assert exchanges[0].url.path == TOKEN_PATH
    assert json.loads(exchanges[0].content) == {"token": "key"}


def test_failed_refresh_is_seen_by_all_waiters_and_can_be_retried() -> None:
    responses = [httpx.Response(503), token_response("second")]

    async def handler(request: httpx.Request) -> httpx.Response:
        _ = request
        await asyncio.sleep(0.01)
        return responses.pop(0)

    async def scenario() -> tuple[list[object], str]:
        async with _make_http(handler) as http:
            manager = _manager(http)
            failures = await asyncio.gather(
                manager.get_valid_token(), manager.get_valid_token(), return_exceptions=True
            )
            return list(failures), await manager.get_valid_token()

    failures, token = asyncio.run(scenario())

    assert all(isinstance(failure, UpstreamUnavailable) for failure in failures)
    assert token == "second"


def test_rejected_api_key_raises_auth_error() -> None:
    async def handler(request: httpx.Request) -> httpx.Response:
        _ = request
        return httpx.Response(403)

    async def scenario() -> str:
        async with _make_http(handler) as http:
            return await _manager(http).get_valid_token()

    with pytest.raises(UpstreamAuthError):
        asyncio.run(scenario())


def test_missing_api_key_fails_before_any_request() -> None:
    calls: list[httpx.Request] = []

    async def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        return token_response()

    async def scenario() -> str:
        async with _make_http(handler) as http:
            return await _manager(http, api_key="  ").get_valid_token()

    with pytest.raises(MissingConfigurationError, match="REDELEX_API_KEY"):
        asyncio.run(scenario())
    assert calls == []


def test_new_token_is_stored_with_expiry(
    case_store: FakeCaseStore,
    fake_uow: Callable[[], FakeCaseUnitOfWork],
) -> None:
    async def handler(request: httpx.Request) -> httpx.Response:
        _ = request
        return token_response("fresh", expires_in=600)

    async def scenario() -> str:
        async with _make_http(handler) as http:
            return await _manager(http, unit_of_work_factory=fake_uow).get_valid_token()

    assert asyncio.run(scenario()) == "fresh"
    [stored] = case_store.tokens
    assert stored.token == "fresh"
    assert stored.expires_at == NOW + timedelta(seconds=600)
    assert case_store.commits == 1


def test_stored_token_is_reused_while_valid(
    case_store: FakeCaseStore,
    fake_uow: Callable[[], FakeCaseUnitOfWork],
) -> None:
    case_store.tokens.append(ExternalToken(token="stored", expires_at=NOW + timedelta(hours=1)))
    calls: list[httpx.Request] = []

    async def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        return token_response()

    async def scenario() -> str:
        async with _make_http(handler) as http:
            return await _manager(http, unit_of_work_factory=fake_uow).get_valid_token()

    assert asyncio.run(scenario()) == "stored"
    assert calls == []


def test_token_inside_grace_period_is_refreshed(
    case_store: FakeCaseStore,
    fake_uow: Callable[[], FakeCaseUnitOfWork],
) -> None:
    case_store.tokens.append(
        ExternalToken(token="stale", expires_at=NOW + timedelta(seconds=30))
    )

    async def handler(request: httpx.Request) -> httpx.Response:
        _ = request
        return token_response("renewed", expires_in=None)

    async def scenario() -> str:
        async with _make_http(handler) as http:
            return await _manager(http, unit_of_work_factory=fake_uow).get_valid_token()

    assert asyncio.run(scenario()) == "renewed"
    assert case_store.tokens[-1].expires_at == NOW + timedelta(days=1)


def test_token_store_is_used_off_the_event_loop_thread(
    fake_uow: Callable[[], FakeCaseUnitOfWork],
) -> None:
    store_threads: list[int] = []

    def recording_uow() -> FakeCaseUnitOfWork:
        store_threads.append(threading.get_ident())
        return fake_uow()

    async def handler(request: httpx.Request) -> httpx.Response:
        _ = request
        return token_response("fresh")

    async def scenario() -> int:
        async with _make_http(handler) as http:
            await _manager(http, unit_of_work_factory=recording_uow).get_valid_token()
        return threading.get_ident()

    loop_thread = asyncio.run(scenario())

    assert len(store_threads) == 2  # read, then write of the new token
    assert loop_thread not in store_threads
