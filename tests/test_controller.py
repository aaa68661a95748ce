from __future__ import annotations

import asyncio
from datetime import date

import pytest
from clinic_heatmap.client import BackendConnectionError
from clinic_heatmap.config import Settings
from clinic_heatmap.controller import CancellationToken, HeatmapController, HeatmapState
from clinic_heatmap.models import HeatmapIdentity
from clinic_heatmap.ranges import DateRange

CLINIC_A = HeatmapIdentity("svc_1", "loc_1")
CLINIC_B = HeatmapIdentity("svc_1", "loc_2")


class FakeClient:
    def __init__(self, settings: Settings | None = None) -> None:
        self.settings = settings or Settings(prefetch_months=0)
        self.calls: list[tuple[HeatmapIdentity, DateRange]] = []
        self.values: dict[str, int] = {}
        self.failing: set[DateRange] = set()
        self.gate: asyncio.Event | None = None
        self.on_fetch = None

    async def fetch_heatmap(self, identity, interval):
        self.calls.append((identity, interval))
        if self.on_fetch is not None:
            self.on_fetch(interval)
        if self.gate is not None:
            await self.gate.wait()
        if interval in self.failing:
            raise BackendConnectionError("backend_connection_failed: boom")
        return {
            day: count
            for day, count in self.values.items()
            if interval.start <= day <= interval.end
        }


def _controller(client: FakeClient) -> HeatmapController:
    controller = HeatmapController(client, client.settings)
    controller.set_identity(CLINIC_A)
    return controller


@pytest.mark.asyncio
async def test_load_month_fetches_grid_and_prefetch_window():
    client = FakeClient()
    client.values = {"2024-03-04": 3, "2024-04-20": 1}
    controller = _controller(client)

    heatmap = await controller.load_month(date(2024, 3, 15))

    assert client.calls == [(CLINIC_A, DateRange("2024-02-25", "2024-04-30"))]
    assert list(heatmap)[0] == "2024-02-25"
    assert list(heatmap)[-1] == "2024-04-06"
    assert len(heatmap) == 42
    assert heatmap["2024-03-04"] == 3
    assert heatmap["2024-03-05"] == 0
    assert controller.state is HeatmapState.SETTLED
    assert not controller.loading


@pytest.mark.asyncio
async def test_load_month_uses_default_prefetch_margin():
    client = FakeClient(Settings())
    controller = _controller(client)

    await controller.load_month("2024-03-01")

    assert client.calls == [(CLINIC_A, DateRange("2024-02-25", "2024-06-30"))]


@pytest.mark.asyncio
async def test_load_month_only_fetches_the_delta():
    client = FakeClient()
    controller = _controller(client)

    await controller.load_month(date(2024, 3, 1))
    await controller.load_month(date(2024, 3, 20))
    await controller.load_month(date(2024, 4, 1))

    assert [interval for _, interval in client.calls] == [
        DateRange("2024-02-25", "2024-04-30"),
        DateRange("2024-05-01", "2024-05-31"),
    ]


@pytest.mark.asyncio
async def test_load_month_without_identity_is_noop():
    client = FakeClient()
    controller = HeatmapController(client, client.settings)

    assert await controller.load_month(date(2024, 3, 1)) == {}
    assert client.calls == []


@pytest.mark.asyncio
async def test_fill_gaps_fetches_sequentially_in_order():
    client = FakeClient()
    controller = _controller(client)
    controller.cache.record_fetch_result(("2024-03-10", "2024-03-15"), {})
    controller.cache.record_fetch_result(("2024-03-20", "2024-03-22"), {})
    in_flight = 0
    max_in_flight = 0

    async def tracked_fetch(identity, interval):
        nonlocal in_flight, max_in_flight
        in_flight += 1
        max_in_flight = max(max_in_flight, in_flight)
        await asyncio.sleep(0)
        client.calls.append((identity, interval))
        in_flight -= 1
        return {}

    client.fetch_heatmap = tracked_fetch

    recorded = await controller.fill_gaps(("2024-03-01", "2024-03-31"), CancellationToken())

    expected = [
        DateRange("2024-03-01", "2024-03-09"),
        DateRange("2024-03-16", "2024-03-19"),
        DateRange("2024-03-23", "2024-03-31"),
    ]
    assert [interval for _, interval in client.calls] == expected
    assert recorded == expected
    assert max_in_flight == 1
    assert controller.cache.covered == [DateRange("2024-03-01", "2024-03-31")]


@pytest.mark.asyncio
async def test_fill_gaps_skips_failed_gap_and_keeps_it_missing():
    client = FakeClient()
    client.values = {"2024-03-20": 6}
    controller = _controller(client)
    controller.cache.record_fetch_result(("2024-03-10", "2024-03-15"), {})
    client.failing = {DateRange("2024-03-01", "2024-03-09")}

    recorded = await controller.fill_gaps(("2024-03-01", "2024-03-31"), CancellationToken())

    assert recorded == [DateRange("2024-03-16", "2024-03-31")]
    assert controller.cache.missing_ranges(("2024-03-01", "2024-03-31")) == [
        DateRange("2024-03-01", "2024-03-09")
    ]
    assert controller.cache.values["2024-03-20"] == 6


@pytest.mark.asyncio
async def test_fill_gaps_cancelled_mid_fetch_records_nothing_partial():
    client = FakeClient()
    controller = _controller(client)
    controller.cache.record_fetch_result(("2024-03-10", "2024-03-15"), {})
    token = CancellationToken()
    second_gap = DateRange("2024-03-16", "2024-03-31")

    def cancel_on_second(interval):
        if interval == second_gap:
            token.cancel()

    client.on_fetch = cancel_on_second

    recorded = await controller.fill_gaps(("2024-03-01", "2024-03-31"), token)

    assert recorded == [DateRange("2024-03-01", "2024-03-09")]
    assert controller.cache.missing_ranges(("2024-03-01", "2024-03-31")) == [second_gap]


@pytest.mark.asyncio
async def test_fill_gaps_with_cancelled_token_fetches_nothing():
    client = FakeClient()
    controller = _controller(client)
    token = CancellationToken()
    token.cancel()

    assert await controller.fill_gaps(("2024-03-01", "2024-03-31"), token) == []
    assert client.calls == []


@pytest.mark.asyncio
async def test_identity_change_resets_cache():
    client = FakeClient()
    controller = _controller(client)
    await controller.load_month(date(2024, 3, 1))

    controller.set_identity(CLINIC_B)

    assert controller.cache.covered == []
    assert controller.cache.values == {}
    assert controller.heatmap == {}
    assert controller.state is HeatmapState.IDLE

    await controller.load_month(date(2024, 3, 1))
    assert client.calls[-1] == (CLINIC_B, DateRange("2024-02-25", "2024-04-30"))


@pytest.mark.asyncio
async def test_same_identity_keeps_cache():
    client = FakeClient()
    controller = _controller(client)
    await controller.load_month(date(2024, 3, 1))

    controller.set_identity(HeatmapIdentity("svc_1", "loc_1"))
    await controller.load_month(date(2024, 3, 1))

    assert len(client.calls) == 1


@pytest.mark.asyncio
async def test_identity_change_during_fetch_discards_stale_response():
    client = FakeClient()
    client.values = {"2024-03-04": 3}
    client.gate = asyncio.Event()
    controller = _controller(client)

    task = asyncio.create_task(controller.load_month(date(2024, 3, 1)))
    while not client.calls:
        await asyncio.sleep(0)
    assert controller.loading

    controller.set_identity(CLINIC_B)
    client.gate.set()
    result = await task

    assert result == {}
    assert controller.cache.covered == []
    assert controller.cache.values == {}
    assert controller.state is HeatmapState.IDLE


@pytest.mark.asyncio
async def test_newer_load_cancels_older_one():
    client = FakeClient()
    client.gate = asyncio.Event()
    controller = _controller(client)

    first = asyncio.create_task(controller.load_month(date(2024, 3, 1)))
    while not client.calls:
        await asyncio.sleep(0)
    second = asyncio.create_task(controller.load_month(date(2024, 6, 1)))
    while len(client.calls) < 2:
        await asyncio.sleep(0)
    client.gate.set()

    first_result = await first
    second_result = await second

    assert "2024-03-04" not in first_result
    assert "2024-06-15" in second_result
    assert controller.cache.covered == [DateRange("2024-05-26", "2024-07-31")]
    assert controller.state is HeatmapState.SETTLED


@pytest.mark.asyncio
async def test_cached_reload_cancels_fill_for_other_month():
    client = FakeClient()
    controller = _controller(client)
    february = await controller.load_month(date(2024, 2, 1))

    client.gate = asyncio.Event()
    april = asyncio.create_task(controller.load_month(date(2024, 4, 1)))
    while len(client.calls) < 2:
        await asyncio.sleep(0)
    assert controller.loading

    back = await controller.load_month(date(2024, 2, 15))
    assert back == february
    assert controller.state is HeatmapState.SETTLED

    client.gate.set()
    await april

    assert controller.heatmap == february
    assert controller.state is HeatmapState.SETTLED
    assert controller.cache.missing_ranges(("2024-04-01", "2024-05-31")) == [
        DateRange("2024-04-01", "2024-05-31")
    ]
    assert len(client.calls) == 2
