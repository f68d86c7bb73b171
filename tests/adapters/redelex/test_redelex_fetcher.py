from __future__ import annotations

from typing import TYPE_CHECKING

import httpx
import pytest

from casetrack.adapters.redelex import (
    RedelexDetailFetcher,
    RedelexError,
    RedelexReportFetcher,
    UpstreamPayloadError,
    UpstreamUnavailable,
)
from casetrack.config import MissingConfigurationError
from casetrack.domain.model import ParticipantRole
from tests.helpers.redelex import (
    PROCESS_PATH,
    REPORT_PATH,
    TOKEN_PATH,
    make_client_factory,
    make_config,
    process_payload,
    report_item,
    report_response,
    token_response,
)

if TYPE_CHECKING:
    from collections.abc import Callable


class _Upstream:
    """Routes mock requests: token exchange first, then the queued API answers."""

    def __init__(self, *answers: httpx.Response) -> None:
        self.answers = list(answers)
        self.requests: list[httpx.Request] = []
        self.exchanges = 0

    def __call__(self, request: httpx.Request) -> httpx.Response:
        if request.url.path == TOKEN_PATH:
            self.exchanges += 1
            return token_response(f"bearer-{self.exchanges}")
        self.requests.append(request)
        return self.answers.pop(0)


def _report_fetcher(upstream: Callable[[httpx.Request], httpx.Response]) -> RedelexReportFetcher:
    return RedelexReportFetcher(config=make_config(), client_factory=make_client_factory(upstream))


def _detail_fetcher(upstream: Callable[[httpx.Request], httpx.Response]) -> RedelexDetailFetcher:
    return RedelexDetailFetcher(config=make_config(), client_factory=make_client_factory(upstream))


def test_report_fetch_sends_token_header_and_report_params() -> None:
    upstream = _Upstream(report_response([report_item(1), report_item(1, role="DEMANDADO")]))

    result = _report_fetcher(upstream)()

    assert result.report_id == 7
    assert [line.role for line in result.lines] == [
        ParticipantRole.PLAINTIFF,
        ParticipantRole.DEFENDANT,
    ]
    [request] = upstream.requests
    assert request.url.path == REPORT_PATH
    assert request.headers["Authorization"] == "bearer-1"
    assert request.url.params["informeId"] == "7"
    assert request.url.params["token"] == "key"


def test_report_fetch_logs_upstream_latency(caplog: pytest.LogCaptureFixture) -> None:
    caplog.set_level("DEBUG", logger="casetrack.adapters.redelex.client")
    upstream = _Upstream(report_response([report_item(1)]))

    _report_fetcher(upstream)()

    assert "Redelex GET /Informes/GetInformeJson answered 200 in" in caplog.text


def test_report_fetch_counts_unreadable_items_as_rejected() -> None:
    upstream = _Upstream(report_response([report_item(1), "not-an-object", 5]))

    result = _report_fetcher(upstream)(report_id=9)

    assert len(result.lines) == 1
    assert result.rejected == 2
    assert upstream.requests[0].url.params["informeId"] == "9"


def test_report_fetch_requires_report_id() -> None:
    fetcher = RedelexReportFetcher(
        config=make_config(report_id=None),
        client_factory=make_client_factory(_Upstream()),
    )

    with pytest.raises(MissingConfigurationError, match="REDELEX_REPORT_ID"):
        fetcher()


def test_unauthorized_call_refreshes_token_and_retries_once() -> None:
    upstream = _Upstream(httpx.Response(401), report_response([report_item(1)]))

    result = _report_fetcher(upstream)()

    assert len(result.lines) == 1
    assert upstream.exchanges == 2
    assert [r.headers["Authorization"] for r in upstream.requests] == ["bearer-1", "bearer-2"]


def test_repeated_unauthorized_surfaces_as_upstream_unavailable() -> None:
    upstream = _Upstream(httpx.Response(401), httpx.Response(401))

    with pytest.raises(UpstreamUnavailable, match="401"):
        _report_fetcher(upstream)()

    assert upstream.exchanges == 2
    assert len(upstream.requests) == 2


def test_server_error_is_reported_as_upstream_unavailable() -> None:
    upstream = _Upstream(httpx.Response(502))

    with pytest.raises(UpstreamUnavailable) as excinfo:
        _report_fetcher(upstream)()

    assert excinfo.value.status_code == 502


def test_report_payload_without_json_string_is_rejected() -> None:
    upstream = _Upstream(httpx.Response(200, json={"unexpected": True}))

    with pytest.raises(UpstreamPayloadError):
        _report_fetcher(upstream)()


def test_report_json_string_must_hold_an_array() -> None:
    upstream = _Upstream(httpx.Response(200, json={"jsonString": '{"a": 1}'}))

    with pytest.raises(UpstreamPayloadError, match="JSON array"):
        _report_fetcher(upstream)()


def test_detail_fetch_translates_process() -> None:
    upstream = _Upstream(httpx.Response(200, json={"proceso": process_payload(42)}))

    detail = _detail_fetcher(upstream)(42)

    assert detail is not None
    assert detail.process_id == 42
    [request] = upstream.requests
    assert request.url.path == PROCESS_PATH
    assert request.url.params["procesoId"] == "42"


@pytest.mark.parametrize(
    "answer",
    [
        httpx.Response(404),
        httpx.Response(200, content=b""),
        httpx.Response(200, json={"proceso": None}),
    ],
)
def test_detail_fetch_returns_none_for_unknown_process(answer: httpx.Response) -> None:
    assert _detail_fetcher(_Upstream(answer))(404) is None


def test_detail_fetch_client_errors_raise() -> None:
    with pytest.raises(RedelexError) as excinfo:
        _detail_fetcher(_Upstream(httpx.Response(400)))(1)

    assert excinfo.value.status_code == 400
