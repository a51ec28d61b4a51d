"""
Capability Link Extraction
Finds capability URLs in HTML handed to the client (shared-link pages,
message bodies rendered as HTML).
"""

import logging
from typing import List
from urllib.parse import urljoin, urlsplit

from bs4 import BeautifulSoup

from .capability import QUERY_PARAM, SLOTS

logger = logging.getLogger(__name__)

_BS_PARSER = "lxml"


def _parse(html: str) -> BeautifulSoup:
    soup = BeautifulSoup(html, _BS_PARSER)

    # lxml occasionally produces an empty tree from valid HTML; if the body
    # has text but no <a> tags were found, retry with html.parser.
    body = soup.find('body')
    body_len = len(body.get_text(strip=True)) if body else 0
    if body_len > 200 and not soup.find_all('a', href=True):
        logger.info(
            f"[LINKS] lxml produced 0 links from {body_len} chars "
            f"of body text, retrying with html.parser"
        )
        soup = BeautifulSoup(html, 'html.parser')
    return soup


def _carries_token(url: str, slot: str) -> bool:
    parts = urlsplit(url)
    if parts.scheme not in ('http', 'https'):
        return False
    if slot == 'fragment' and parts.fragment:
        return True
    if slot == 'userinfo' and '@' in parts.netloc:
        return True
    return any(
        pair.partition('=')[0] == QUERY_PARAM and pair.partition('=')[2]
        for pair in parts.query.split('&')
    )


def extract_capability_links(html: str, base_url: str, slot: str = 'fragment') -> List[str]:
    """
    Extract capability links from an HTML document.

    Args:
        html: Document source
        base_url: URL the document was loaded from (for relative hrefs)
        slot: Token slot used by the deployment ('fragment' or 'userinfo')

    Returns:
        Absolute capability URLs in document order, without duplicates
    """
    if slot not in SLOTS:
        raise ValueError(f"slot must be one of {SLOTS}, got {slot!r}")

    links = []
    seen = set()

    for anchor in _parse(html).find_all('a', href=True):
        href = anchor['href'].strip()

        # Skip empty, javascript, and fragment-only links
        if not href or href.startswith(('javascript:', 'mailto:', 'tel:', '#')):
            continue

        try:
            absolute_url = urljoin(base_url, href)
            if not _carries_token(absolute_url, slot):
                continue
        except ValueError:
            logger.debug("[LINKS] Skipping malformed href")
            continue

        if absolute_url in seen:
            continue
        seen.add(absolute_url)
        links.append(absolute_url)

    return links
