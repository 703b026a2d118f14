"""Fixed list of news publications checked by every audit."""

from __future__ import annotations

from typing import Iterable, List, Optional, Sequence, Tuple

from .models import Publication

_PUBLICATIONS: Tuple[Tuple[str, str], ...] = (
    ("finance.yahoo.com", "Yahoo Finance"),
    ("tradingview.com", "TradingView"),
    ("marketwatch.com", "MarketWatch"),
    ("apnews.com", "AP News"),
    ("morningstar.com", "Morningstar"),
    ("globenewswire.com", "GlobeNewswire"),
    ("markets.businessinsider.com", "Business Insider"),
    ("ktla.com", "KTLA"),
    ("fox8.com", "Fox 8"),
    ("wgntv.com", "WGN TV"),
    ("kxan.com", "KXAN"),
    ("woodtv.com", "Wood TV"),
    ("fox59.com", "Fox 59"),
    ("manilatimes.net", "Manila Times"),
    ("abc27.com", "ABC 27"),
    ("8newsnow.com", "8 News Now"),
    ("kron4.com", "KRON 4"),
    ("kdvr.com", "KDVR"),
    ("wkbn.com", "WKBN"),
    ("wavy.com", "WAVY"),
    ("fox5sandiego.com", "Fox 5 San Diego"),
    ("wric.com", "WRIC"),
    ("wkrn.com", "WKRN"),
    ("fox2now.com", "Fox 2 Now"),
    ("localsyr.com", "Local SYR"),
    ("wane.com", "WANE"),
    ("pix11.com", "PIX11"),
    ("keloland.com", "KELOLAND"),
    ("wwlp.com", "WWLP"),
    ("koin.com", "KOIN"),
)

NEWS_PUBLICATIONS: Tuple[Publication, ...] = tuple(
    Publication(domain=domain, name=name) for domain, name in _PUBLICATIONS
)


def find_publication(
    domain: str,
    publications: Iterable[Publication] = NEWS_PUBLICATIONS,
) -> Optional[Publication]:
    for publication in publications:
        if publication.domain == domain:
            return publication
    return None


def partition(publications: Sequence[Publication], size: int) -> List[List[Publication]]:
    """Split ``publications`` into consecutive batches of at most ``size`` entries."""

    if size <= 0:
        raise ValueError("Batch size must be greater than 0")
    return [list(publications[i:i + size]) for i in range(0, len(publications), size)]


__all__ = ["NEWS_PUBLICATIONS", "find_publication", "partition"]
