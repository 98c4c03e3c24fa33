"""Hints for unlabeled devices: who made it, or whether the MAC is randomized."""

import logging

from mac_vendor_lookup import MacLookup, VendorNotFoundError

logger = logging.getLogger(__name__)

_mac_lookup = MacLookup()

RANDOMIZED_HINT = "Randomized MAC"


def _hex_digits(mac: str) -> str:
    """``aa:bb:cc:dd:ee:ff``, ``AA-BB-...`` and ``aabb.ccdd.eeff`` all become ``AABBCCDDEEFF``."""
    return "".join(c for c in mac if c not in ":-.").upper()


def is_randomized(mac: str) -> bool:
    """True when the U/L bit of the first octet marks a locally administered address.

    Phones and laptops use these for per-network privacy, so there is no
    vendor to look up.
    """
    try:
        first_octet = int(_hex_digits(mac)[:2], 16)
    except ValueError:
        return False
    return bool(first_octet & 0x02)


def describe_mac(mac: str) -> str | None:
    """Short hint for the maintenance view, or None when nothing is known."""
    if is_randomized(mac):
        return RANDOMIZED_HINT
    try:
        return _mac_lookup.lookup(_hex_digits(mac))
    except VendorNotFoundError:
        return None
    except Exception:
        # OUI database missing or unreadable: the hint is optional
        logger.debug("Vendor lookup failed for %s", mac, exc_info=True)
        return None
