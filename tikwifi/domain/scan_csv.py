"""Parsing of the CSV file RouterOS writes for ``/interface/wireless/scan save-file=``."""

from __future__ import annotations

from collections.abc import Iterable
from typing import Any

from pydantic import BaseModel, Field

_QUOTES = ("'", '"')


class ScannedNetwork(BaseModel):
    """One access point seen by the router's scan."""

    ssid: str
    mac: str = ""
    frequency: int = 0  # MHz
    signal: int = 0  # dBm
    privacy: bool = False
    known: bool = False
    profile_name: str = Field(default="")


def _split_line(line: str) -> list[str]:
    fields: list[str] = []
    current: list[str] = []
    in_quote = False
    for char in line:
        if char in _QUOTES:
            in_quote = not in_quote
        elif char == "," and not in_quote:
            fields.append("".join(current).strip().strip("'\""))
            current = []
        else:
            current.append(char)
    fields.append("".join(current).strip().strip("'\""))
    return fields


def _int_prefix(text: str) -> int:
    text = text.strip()
    digits = ""
    for i, char in enumerate(text):
        if char.isdigit() or (char in "+-" and i == 0):
            digits += char
        else:
            break
    try:
        return int(digits)
    except ValueError:
        return 0


def parse_scan_csv(text: str) -> list[ScannedNetwork]:
    """
    Parse scan CSV rows ``mac,ssid,channel,signal,...,privacy``.

    Lines with fewer than four fields or a blank SSID are skipped. The
    channel column looks like ``2412/20-Ce/gn``; the leading number is the
    frequency. Networks come back strongest first.
    """
    networks: list[ScannedNetwork] = []
    for line in (text or "").splitlines():
        if not line.strip():
            continue
        fields = _split_line(line)
        if len(fields) < 4 or not fields[1]:
            continue
        channel = fields[2]
        frequency = _int_prefix(channel.split("/", 1)[0]) if "/" in channel else 0
        privacy = len(fields) > 5 and fields[5].lower() == "privacy"
        networks.append(
            ScannedNetwork(
                ssid=fields[1],
                mac=fields[0],
                frequency=frequency,
                signal=_int_prefix(fields[3]),
                privacy=privacy,
            )
        )
    networks.sort(key=lambda n: n.signal, reverse=True)
    return networks


def mark_known(networks: Iterable[ScannedNetwork], profiles: Iterable[dict[str, Any]]) -> list[ScannedNetwork]:
    """Flag networks that already have a managed security profile."""
    by_ssid = {p.get("ssid"): p.get("name", "") for p in profiles if p.get("ssid")}
    marked = []
    for net in networks:
        if net.ssid in by_ssid:
            net = net.model_copy(update={"known": True, "profile_name": by_ssid[net.ssid]})
        marked.append(net)
    return marked
