"""
Site Dashboard (Streamlit)

- Article list grouped by year and the "now" page
- Mars clock (MTC) and daylight line, ticking once per second
- Public IP trivia
- ISS tracker: distance readout, pydeck map of ISS + you, orbit ring view,
  polled on the configured interval
- Coffee mug, because every page needs one

Run:
    streamlit run dashboard/app.py
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional, Tuple

import pandas as pd
import pydeck as pdk
import requests
import streamlit as st

from common.config import load_config
from common.kv_cache import KVCache
from common.logging_setup import setup_logging
from common.types import IssReadout, Position
from common.utils import iso_now_ms, utc_now
from iss_tracker.orbit_view import OrbitView
from iss_tracker.service import build_tracker, resolve_user
from iss_tracker.tracker import ISSTracker, STATUS_TEXT
from widgets import blog, now
from widgets.coffee import FRAME_INTERVAL_S, coffee_frames
from widgets.content import load_articles, load_now
from widgets.ipmagic import ip_widget
from widgets.mars import mars_time


# -------------------------
# Config
# -------------------------
CONFIG_PATH_DEFAULT = "config/params.yaml"
ISS_COLOR = [163, 127, 95, 220]
USER_COLOR = [45, 106, 69, 220]


# -------------------------
# Helpers
# -------------------------
@st.cache_resource
def _session() -> requests.Session:
    return requests.Session()


@st.cache_data(ttl=3600, show_spinner=False)
def _ip(url: str, timeout: float) -> Dict[str, str]:
    w = ip_widget(url, session=_session(), timeout=timeout)
    return {"address": w.address, "info": w.info}


def articles_frame(items: List[blog.ListItem]) -> pd.DataFrame:
    rows = []
    year = None
    for it in items:
        if it.kind == blog.KIND_YEAR:
            year = it.text
            continue
        rows.append({"year": year, "date": it.meta, "title": it.text, "link": it.link})
    return pd.DataFrame(rows, columns=["year", "date", "title", "link"])


def map_points(readout: Optional[IssReadout]) -> List[Dict[str, Any]]:
    pts: List[Dict[str, Any]] = []
    if readout is None:
        return pts
    if readout.iss is not None:
        pts.append({"position": [readout.iss.lon, readout.iss.lat], "color": ISS_COLOR, "name": "ISS"})
    if readout.user is not None:
        pts.append({"position": [readout.user.lon, readout.user.lat], "color": USER_COLOR, "name": "You"})
    return pts


def iss_objects(P: Dict, cache: KVCache, config_path: str) -> Tuple[ISSTracker, OrbitView]:
    """One tracker + view per browser session, rebuilt only when the config changes."""
    s = st.session_state.get("iss")
    if s is None or s["config"] != config_path:
        tracker = build_tracker(P, cache, _session(), None)
        ov = P["orbit_view"]
        view = OrbitView(int(ov["width"]), int(ov["height"]))
        tracker.add_listener(view.update_data)
        s = st.session_state["iss"] = {"config": config_path, "tracker": tracker, "view": view, "loc": None}
    return s["tracker"], s["view"]


def apply_user(tracker: ISSTracker, view: OrbitView, user: Optional[Position]) -> None:
    tracker.set_user(user)
    view.user = user


# -------------------------
# UI
# -------------------------
st.set_page_config(page_title="Home", layout="wide")

with st.sidebar:
    st.subheader("Settings")
    config_path = st.text_input("Config", CONFIG_PATH_DEFAULT)
    fixed_loc = st.checkbox("Use a fixed location", value=False)
    fixed_lat = st.number_input("Latitude", min_value=-90.0, max_value=90.0, value=0.0, disabled=not fixed_loc)
    fixed_lon = st.number_input("Longitude", min_value=-180.0, max_value=180.0, value=0.0, disabled=not fixed_loc)
    redetect = st.button("Re-detect my location", disabled=fixed_loc)
    st.caption("The ISS is polled on the configured interval (rate limited to one call per window).")

P = load_config(config_path)
setup_logging(P["logging"].get("level"))
cache = KVCache(P["cache"]["root"])
timeout = float(P["http"]["timeout_s"])

# prompting is a terminal concept; never block the page on stdin
P["location"]["prompt"] = False

tracker, view = iss_objects(P, cache, config_path)
loc_key = ("fixed", fixed_lat, fixed_lon) if fixed_loc else ("auto",)
if redetect:
    cache.clear(P["location"]["cache_key"])
if redetect or st.session_state["iss"]["loc"] != loc_key:
    if fixed_loc:
        user = resolve_user(P, cache, _session(), fixed_lat, fixed_lon)
    else:
        user = resolve_user(P, cache, _session(), None, None)
    apply_user(tracker, view, user)
    st.session_state["iss"]["loc"] = loc_key


@st.fragment(run_every=1)
def mars_clock() -> None:
    mt = mars_time()
    st.metric("Coordinated Mars Time", mt.text)
    st.caption(mt.daylight)


@st.fragment(run_every=FRAME_INTERVAL_S)
def coffee_mug() -> None:
    frames = st.session_state.setdefault("coffee", coffee_frames())
    st.code(next(frames), language=None)


@st.fragment(run_every=float(P["iss"]["poll_interval_s"]))
def iss_panel(tracker: ISSTracker, view: OrbitView) -> None:
    # a skipped tick (request still in flight) shows the previous readout
    readout = tracker.update() or tracker.last_readout

    k1, k2 = st.columns(2)
    if readout is not None:
        k1.metric("Distance", readout.headline)
        k2.metric("Signal", STATUS_TEXT.get(readout.status, readout.status))
        st.caption(readout.detail)

    m1, m2 = st.columns(2)
    with m1:
        pts = map_points(readout)
        if pts:
            st.pydeck_chart(
                pdk.Deck(
                    map_style=None,
                    initial_view_state=pdk.ViewState(
                        latitude=pts[0]["position"][1],
                        longitude=pts[0]["position"][0],
                        zoom=1,
                        pitch=0,
                        bearing=0,
                    ),
                    layers=[
                        pdk.Layer(
                            "ScatterplotLayer",
                            data=pts,
                            get_position="position",
                            get_fill_color="color",
                            get_radius=150000,
                            pickable=True,
                        )
                    ],
                    tooltip={"text": "{name}"},
                )
            )
        else:
            st.info("No ISS position yet.")
    with m2:
        st.image(view.draw(), channels="BGR", caption="Orbit ring (longitude only)")


st.title("Hello, visitor")

left, right = st.columns([3, 2])

with left:
    st.subheader("Writing")
    items = blog.render_articles(load_articles(P["content"]["articles"]))
    df = articles_frame(items)
    if df.empty:
        st.info("Nothing published yet.")
    else:
        for year, grp in df.groupby("year", sort=False):
            st.markdown(f"**{year}**")
            for _, row in grp.iterrows():
                st.markdown(f"[{row['title']}]({row['link']}) · {row['date']}")

    st.subheader("Now")
    blocks = now.render_now(load_now(P["content"]["now"]))
    if not blocks:
        st.caption("Nothing to report.")
    for blk in blocks:
        st.markdown(f"**{blk.label}**")
        for e in blk.entries:
            if e.author:
                st.markdown(f"*[{e.title}]({e.link})* by [{e.author}]({e.author_link})")
            else:
                st.markdown(f"[{e.title}]({e.link})")

with right:
    st.subheader("Mars")
    mars_clock()

    st.subheader("Your IP")
    ipw = _ip(P["ip"]["url"], timeout)
    st.code(ipw["address"], language=None)
    if ipw["info"]:
        st.write(ipw["info"])

    st.subheader("Coffee")
    coffee_mug()

st.subheader("ISS")
iss_panel(tracker, view)

st.caption(f"(c) {utc_now().year} · Last refresh: {iso_now_ms()}")
