"""Tests for portalexport.browser.network module."""

import asyncio

import pytest

from portalexport.agents.base import SelectorTimeout
from portalexport.browser.network import NetworkIdleWatcher

from fakes import FakePage, FakeRequest


def _watcher(page):
    watcher = NetworkIdleWatcher(poll_interval=5)
    watcher.attach(page)
    return watcher


class TestNetworkIdleWatcher:
    def test_tracks_inflight_requests(self):
        page = FakePage()
        watcher = _watcher(page)
        request = FakeRequest("https://portal.test/api")

        page.emit("request", request)
        assert watcher.inflight == 1

        page.emit("requestfinished", request)
        assert watcher.inflight == 0

    def test_failed_request_is_no_longer_inflight(self):
        page = FakePage()
        watcher = _watcher(page)
        request = FakeRequest("https://portal.test/api")

        page.emit("request", request)
        page.emit("requestfailed", request)

        assert watcher.inflight == 0

    def test_idle_page_returns(self):
        page = FakePage()
        watcher = _watcher(page)

        asyncio.run(watcher.wait_for_idle(idle_time=10, timeout=1000))

    def test_waits_for_inflight_request_to_finish(self):
        page = FakePage()
        watcher = _watcher(page)
        request = FakeRequest("https://portal.test/api")

        async def scenario():
            page.emit("request", request)
            loop = asyncio.get_running_loop()
            loop.call_later(0.05, page.emit, "requestfinished", request)
            start = loop.time()
            await watcher.wait_for_idle(idle_time=10, timeout=2000)
            return loop.time() - start

        elapsed = asyncio.run(scenario())

        assert elapsed >= 0.05
        assert watcher.inflight == 0

    def test_times_out_while_busy(self):
        page = FakePage()
        watcher = _watcher(page)
        page.emit("request", FakeRequest("https://portal.test/long-poll"))

        with pytest.raises(SelectorTimeout, match="network idle"):
            asyncio.run(watcher.wait_for_idle(idle_time=10, timeout=50))

    def test_detach_stops_tracking(self):
        page = FakePage()
        watcher = _watcher(page)
        watcher.detach(page)

        page.emit("request", FakeRequest("https://portal.test/api"))

        assert watcher.inflight == 0
