"""Jinja filters for device tables."""

from dataclasses import dataclass

# (minimum dBm, bars, text), strongest first
_RSSI_LEVELS = (
    (-50, 4, "Excellent"),
    (-60, 3, "Good"),
    (-67, 2, "Fair"),
    (-75, 1, "Weak"),
)


@dataclass(frozen=True)
class SignalLevel:
    bars: int
    text: str


def rssi_level(rssi: int | None) -> SignalLevel | None:
    """Map RSSI in dBm to 0-4 bars and a human label."""
    if rssi is None:
        return None
    for threshold, bars, text in _RSSI_LEVELS:
        if rssi >= threshold:
            return SignalLevel(bars=bars, text=text)
    return SignalLevel(bars=0, text="Very weak")


def pad_ip(ip: str | None, width: int = 3) -> str:
    """Zero-pad the last IPv4 octet so addresses line up in a column.

    Anything that is not a dotted quad is returned unchanged.
    """
    if not ip:
        return ""
    parts = ip.split(".")
    if len(parts) != 4:
        return ip
    parts[3] = parts[3].rjust(width, "0")
    return ".".join(parts)
