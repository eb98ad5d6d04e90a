from __future__ import annotations

"""
IP number-theory novelty: look up the public address and say something
about the sum of its octets.
"""

import logging
import math
from dataclasses import dataclass
from typing import Optional

import requests


log = logging.getLogger(__name__)

IPIFY_URL = "https://api.ipify.org?format=json"
HIDDEN_TEXT = "Hidden by the void"
IPV6_TEXT = "IPv6? You are living in the future."


@dataclass(frozen=True)
class IpWidget:
    address: str
    info: str = ""


def is_prime(n: int) -> bool:
    if n <= 1:
        return False
    for i in range(2, math.isqrt(n) + 1):
        if n % i == 0:
            return False
    return True


def describe_ip(ip: str) -> str:
    """
    IPv4 -> octet-sum trivia; anything else is treated as IPv6.
    Raises ValueError for a dotted string that is not all integers.
    """
    if "." not in ip:
        return IPV6_TEXT
    parts = [int(p) for p in ip.split(".")]
    total = sum(parts)
    text = f"The sum of your octets is {total}."
    if is_prime(total):
        text += " That is a prime number."
    elif total % 2 == 0:
        text += f" It's an even number (2 × {total // 2})."
    else:
        text += " An odd number."
    text += f" Your first byte in binary is {parts[0]:b}."
    return text


def fetch_ip(url: str = IPIFY_URL, session: Optional[requests.Session] = None, timeout: float = 10.0) -> str:
    s = session or requests.Session()
    r = s.get(url, timeout=timeout)
    r.raise_for_status()
    return str(r.json()["ip"])


def ip_widget(url: str = IPIFY_URL, session: Optional[requests.Session] = None, timeout: float = 10.0) -> IpWidget:
    """Never raises: lookup or parse failures yield the placeholder."""
    try:
        ip = fetch_ip(url, session=session, timeout=timeout)
        return IpWidget(address=ip, info=describe_ip(ip))
    except Exception as e:
        log.warning("IP lookup failed", extra={"extra": {"error": str(e)}})
        return IpWidget(address=HIDDEN_TEXT)
