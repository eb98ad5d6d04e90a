from __future__ import annotations

"""
Console front-end for the site widgets.

Examples:
  python -m widgets.service blog
  python -m widgets.service now
  python -m widgets.service mars            # ticks every second, Ctrl-C to stop
  python -m widgets.service mars --once
  python -m widgets.service ip
  python -m widgets.service coffee --duration 10
  python -m widgets.service all
"""

import argparse
import sys
import threading
import time
from typing import Dict, Optional

import requests

from common.config import load_config
from common.logging_setup import setup_logging
from common.utils import utc_now
from widgets import blog, coffee, now
from widgets.content import load_articles, load_now
from widgets.ipmagic import ip_widget
from widgets.mars import mars_time


CLEAR = "\x1b[H\x1b[J"


def _stop_after(stop: threading.Event, duration: Optional[float]) -> None:
    if duration is None:
        return

    def _timer():
        time.sleep(float(duration))
        stop.set()
    threading.Thread(target=_timer, daemon=True).start()


def show_blog(P: Dict, stagger: bool = False) -> None:
    items = blog.render_articles(load_articles(P["content"]["articles"]))
    if not stagger:
        print(blog.format_text(items))
        return
    last = 0
    for it in items:
        time.sleep(max(0, it.delay_ms - last) / 1000.0)
        last = it.delay_ms
        print(blog.format_text([it]), flush=True)


def show_now(P: Dict) -> None:
    text = now.format_text(now.render_now(load_now(P["content"]["now"])))
    print(text or "(nothing right now)")


def show_mars(once: bool, duration: Optional[float]) -> None:
    if once:
        mt = mars_time()
        print(mt.text)
        print(mt.daylight)
        return
    stop = threading.Event()
    _stop_after(stop, duration)
    try:
        while not stop.is_set():
            mt = mars_time()
            print(f"\r{mt.text}  {mt.daylight}", end="", flush=True)
            stop.wait(1.0)
    except KeyboardInterrupt:
        pass
    print()


def show_ip(P: Dict) -> None:
    w = ip_widget(P["ip"]["url"], session=requests.Session(), timeout=float(P["http"]["timeout_s"]))
    print(w.address)
    if w.info:
        print(w.info)


def show_coffee(duration: Optional[float]) -> None:
    stop = threading.Event()
    _stop_after(stop, duration)
    tty = sys.stdout.isatty()

    def _draw(frame: str) -> None:
        print((CLEAR if tty else "") + frame, flush=True)

    try:
        coffee.animate(_draw, stop)
    except KeyboardInterrupt:
        pass


def show_all(P: Dict) -> None:
    print("== Writing")
    show_blog(P)
    print("\n== Now")
    show_now(P)
    print("\n== Mars")
    show_mars(once=True, duration=None)
    print("\n== Your IP")
    show_ip(P)
    print("\n== Coffee")
    print(next(coffee.coffee_frames()))
    print(f"\n(c) {utc_now().year}")


def main() -> None:
    ap = argparse.ArgumentParser(description="Site widgets in the terminal")
    ap.add_argument("--config", default="config/params.yaml")
    sub = ap.add_subparsers(dest="widget", required=True)

    p_blog = sub.add_parser("blog", help="Article list")
    p_blog.add_argument("--stagger", action="store_true", help="Print rows with their fade-in delays")
    sub.add_parser("now", help="What I'm reading / listening to")
    p_mars = sub.add_parser("mars", help="Coordinated Mars Time")
    p_mars.add_argument("--once", action="store_true")
    p_mars.add_argument("--duration", type=float, default=None)
    sub.add_parser("ip", help="Public IP trivia")
    p_coffee = sub.add_parser("coffee", help="Steaming mug")
    p_coffee.add_argument("--duration", type=float, default=None)
    sub.add_parser("all", help="Everything once")

    args = ap.parse_args()

    P = load_config(args.config)
    # stdout belongs to the widgets
    setup_logging(P["logging"].get("level"), stream=sys.stderr)

    if args.widget == "blog":
        show_blog(P, stagger=args.stagger)
    elif args.widget == "now":
        show_now(P)
    elif args.widget == "mars":
        show_mars(args.once, args.duration)
    elif args.widget == "ip":
        show_ip(P)
    elif args.widget == "coffee":
        show_coffee(args.duration)
    else:
        show_all(P)


if __name__ == "__main__":
    main()
