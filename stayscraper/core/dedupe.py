"""
In-memory de-duplication of scraped stays before they hit the database.
"""

from typing import Dict, Iterable, List, Optional

from stayscraper.models.stay import Stay, canonical_url


def _name_address_key(stay: Stay) -> str:
    return f"{(stay.name or '').lower()}|{(stay.address or '').lower()}"


def dedupe_stays(stays: Iterable[Optional[Stay]]) -> List[Stay]:
    """
    Collapse duplicates: first by canonical Google Maps URL, then by
    case-insensitive name + address. The first occurrence wins each time
    and first-seen order is kept.
    """
    by_url: Dict[str, Stay] = {}
    for stay in stays:
        if stay is None or not stay.google_maps_url:
            continue
        by_url.setdefault(canonical_url(stay.google_maps_url), stay)

    by_name_address: Dict[str, Stay] = {}
    for stay in by_url.values():
        by_name_address.setdefault(_name_address_key(stay), stay)

    return list(by_name_address.values())
