"""
Unit tests for the ISS client and poller
"""

import logging
import os
import sys
import threading
from unittest.mock import Mock

import pytest
import requests

# Add project root to path
project_root = os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))
sys.path.append(project_root)

from common.types import Position
from iss_tracker.client import DEFAULT_URL, ISSClient, ISSFetchError
from iss_tracker.tracker import (
    ISSTracker,
    LOST_DETAIL,
    LOST_HEADLINE,
    NO_USER_DETAIL,
    STATUS_TEXT,
    WEAK_SIGNAL_TEXT,
    render_readout,
)


ISS_BODY = {"name": "iss", "id": 25544, "latitude": 12.3456, "longitude": -45.6789, "altitude": 420.1}


class TestISSClient:
    def test_fetch_success(self, make_resp):
        session = Mock()
        session.get.return_value = make_resp(200, ISS_BODY)
        pos = ISSClient(session=session, timeout=3.0).fetch_position()
        assert pos == Position(12.3456, -45.6789)
        session.get.assert_called_once_with(DEFAULT_URL, timeout=3.0)

    def test_rate_limited(self, make_resp):
        session = Mock()
        session.get.return_value = make_resp(429)
        with pytest.raises(ISSFetchError, match="Rate limit exceeded"):
            ISSClient(session=session).fetch_position()

    def test_server_error(self, make_resp):
        session = Mock()
        session.get.return_value = make_resp(500)
        with pytest.raises(ISSFetchError, match="ISS API failed"):
            ISSClient(session=session).fetch_position()

    def test_throttle_header_warns_but_succeeds(self, make_resp, caplog):
        session = Mock()
        session.get.return_value = make_resp(200, ISS_BODY, headers={"X-Rl": "0"})
        with caplog.at_level(logging.WARNING):
            pos = ISSClient(session=session).fetch_position()
        assert pos.lat == pytest.approx(12.3456)
        assert any("ISS API Throttled" in r.getMessage() for r in caplog.records)

    def test_bad_body(self, make_resp):
        session = Mock()
        session.get.return_value = make_resp(200, {"message": "nope"})
        with pytest.raises(ISSFetchError):
            ISSClient(session=session).fetch_position()


class TestRenderReadout:
    def test_with_user(self):
        r = render_readout(Position(0, 90), Position(0, 0), "live")
        assert r.headline == "10,008 km away"
        assert r.detail == "ISS at Lat: 0.00, Lon: 90.00"
        assert r.is_live

    def test_without_user(self):
        r = render_readout(Position(12.3456, -45.6789), None, "cached")
        assert r.headline == "Lat: 12.35, Lon: -45.68"
        assert r.detail == NO_USER_DETAIL
        assert not r.is_live

    def test_half_kilometre_rounds_up(self, monkeypatch):
        monkeypatch.setattr("iss_tracker.tracker.haversine_km", lambda *a: 12344.5)
        assert render_readout(Position(0, 0), Position(0, 1), "live").headline == "12,345 km away"
        monkeypatch.setattr("iss_tracker.tracker.haversine_km", lambda *a: 0.5)
        assert render_readout(Position(0, 0), Position(0, 1), "live").headline == "1 km away"

    def test_below_half_rounds_down(self, monkeypatch):
        monkeypatch.setattr("iss_tracker.tracker.haversine_km", lambda *a: 12344.49)
        assert render_readout(Position(0, 0), Position(0, 1), "live").headline == "12,344 km away"


def make_tracker(cache, client, user=None):
    return ISSTracker(client, cache, user, rate_limit_window_s=2.0, stale_ttl_s=60.0, poll_interval_s=5.0)


class TestISSTracker:
    def test_live_fetch_updates_cache_and_listeners(self, cache):
        client = Mock()
        client.fetch_position.return_value = Position(10, 20)
        seen = []
        t = make_tracker(cache, client, user=Position(10, 21))
        t.add_listener(lambda iss, user: seen.append((iss, user)))

        r = t.update()

        assert r.status == "live"
        assert r.headline.endswith("km away")
        assert cache.get_cached("iss_pos_cache_v1", 2.0) == {"lat": 10.0, "lon": 20.0}
        assert seen == [(Position(10, 20), Position(10, 21))]
        assert t.state.iss == Position(10, 20)

    def test_served_from_cache_inside_rate_window(self, cache, clock):
        client = Mock()
        client.fetch_position.return_value = Position(10, 20)
        t = make_tracker(cache, client)
        t.update()
        clock.advance(1.0)
        r = t.update()
        assert r.status == "cached"
        assert client.fetch_position.call_count == 1

    def test_fetches_again_after_rate_window(self, cache, clock):
        client = Mock()
        client.fetch_position.side_effect = [Position(10, 20), Position(11, 25)]
        t = make_tracker(cache, client)
        t.update()
        clock.advance(2.0)
        r = t.update()
        assert r.status == "live"
        assert r.iss == Position(11, 25)
        assert client.fetch_position.call_count == 2

    def test_failure_with_recent_cache_is_weak(self, cache, clock):
        client = Mock()
        client.fetch_position.side_effect = [Position(10, 20), requests.ConnectionError("down")]
        user = Position(10, 21)
        seen = []
        t = make_tracker(cache, client, user=user)
        t.update()
        t.add_listener(lambda iss, u: seen.append((iss, u)))
        clock.advance(30)

        r = t.update()

        assert r.status == "weak"
        assert STATUS_TEXT[r.status] == WEAK_SIGNAL_TEXT == "Connection Weak..."
        assert r.iss == Position(10, 20)
        # text is measured from the stale position
        expected = render_readout(Position(10, 20), user, "weak")
        assert r.headline == expected.headline
        assert r.headline.endswith(" km away")
        assert r.detail == "ISS at Lat: 10.00, Lon: 20.00"
        assert seen == [(Position(10, 20), user)]

    def test_failure_with_old_cache_is_lost(self, cache, clock):
        client = Mock()
        client.fetch_position.side_effect = [Position(10, 20), ISSFetchError("Rate limit exceeded")]
        t = make_tracker(cache, client)
        t.update()
        clock.advance(60)
        r = t.update()
        assert r.status == "lost"
        assert r.headline == LOST_HEADLINE
        assert r.detail == LOST_DETAIL
        assert r.iss is None

    def test_failure_without_cache_is_lost(self, cache):
        client = Mock()
        client.fetch_position.side_effect = ISSFetchError("ISS API failed: 500")
        listener = Mock()
        t = make_tracker(cache, client)
        t.add_listener(listener)
        r = t.update()
        assert r.status == "lost"
        listener.assert_not_called()

    def test_readout_listeners_see_every_state(self, cache):
        client = Mock()
        client.fetch_position.side_effect = ISSFetchError("boom")
        got = []
        t = make_tracker(cache, client)
        t.add_readout_listener(got.append)
        t.update()
        assert [r.status for r in got] == ["lost"]

    def test_single_flight_skips_overlapping_tick(self, cache):
        entered = threading.Event()
        release = threading.Event()

        def slow_fetch():
            entered.set()
            release.wait(5)
            return Position(1, 1)

        client = Mock()
        client.fetch_position.side_effect = slow_fetch
        t = make_tracker(cache, client)

        worker = threading.Thread(target=t.update)
        worker.start()
        assert entered.wait(5)

        assert t.update() is None  # overlapping call is a no-op
        release.set()
        worker.join(5)

        assert client.fetch_position.call_count == 1
        assert t.last_readout.status == "live"

    def test_guard_released_after_failure(self, cache):
        client = Mock()
        client.fetch_position.side_effect = [ISSFetchError("x"), Position(3, 4)]
        t = make_tracker(cache, client)
        assert t.update().status == "lost"
        assert t.update().status == "live"

    def test_listener_errors_do_not_break_tick(self, cache):
        client = Mock()
        client.fetch_position.return_value = Position(1, 2)
        t = make_tracker(cache, client)
        t.add_listener(Mock(side_effect=RuntimeError("bad listener")))
        assert t.update().status == "live"

    def test_run_stops_on_event(self, cache):
        client = Mock()
        client.fetch_position.return_value = Position(1, 2)
        t = make_tracker(cache, client)
        stop = threading.Event()
        t.add_readout_listener(lambda _r: stop.set())
        t.run(stop)  # returns after the first tick sets the event
        assert client.fetch_position.call_count == 1

    def test_set_user_changes_next_readout(self, cache, clock):
        client = Mock()
        client.fetch_position.return_value = Position(0, 90)
        t = make_tracker(cache, client)
        assert t.update().detail == NO_USER_DETAIL

        t.set_user(Position(0, 0))
        clock.advance(2.0)
        r = t.update()
        assert r.headline == "10,008 km away"
        assert r.user == Position(0, 0)

        t.set_user(None)
        clock.advance(2.0)
        assert t.update().headline == "Lat: 0.00, Lon: 90.00"
