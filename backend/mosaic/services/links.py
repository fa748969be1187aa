from __future__ import annotations

from datetime import datetime
from typing import Optional

from mosaic.models.metadata import Link, PartialLink


def effective_link_date(link: Link, release_end: datetime) -> datetime:
    return link.date if link.date is not None else release_end


def gate_links(links: dict[str, Link], release_end: datetime, now: datetime) -> dict[str, PartialLink]:
    """
    Hide the url of every link whose reveal date is still in the future.
    The date is always sent so clients can show when the link unlocks.
    """
    out: dict[str, PartialLink] = {}
    for label, link in links.items():
        date = effective_link_date(link, release_end)
        out[label] = PartialLink(url=link.url if now >= date else None, date=date)
    return out


def next_link_reveal(links: dict[str, Link], release_end: datetime, now: datetime) -> Optional[datetime]:
    pending = [
        date
        for date in (effective_link_date(link, release_end) for link in links.values())
        if date > now
    ]
    return min(pending) if pending else None
