"""
Pure extraction functions for directory listing pages.

These functions are unit-testable and don't perform I/O.
They read listing rows and the next-page link from a rendered HTML snapshot.
"""

from typing import List, Optional
from urllib.parse import urljoin
from bs4 import BeautifulSoup, Comment, NavigableString, Tag
import re

from listing_models import ListingRecord
from profile_loader import SiteProfile, DEFAULT_PROFILE

# Fields whose value is the element's link target rather than its text
LINK_FIELDS = {'website', 'profile_url'}

_WHITESPACE_RE = re.compile(r'\s+')

# Children that never contribute rendered text
_NON_TEXT_TAGS = {'script', 'style', 'noscript', 'template'}

# Elements rendered on their own line
_BLOCK_TAGS = {
    'address', 'article', 'aside', 'blockquote', 'br', 'dd', 'div', 'dl', 'dt',
    'figcaption', 'figure', 'footer', 'form', 'h1', 'h2', 'h3', 'h4', 'h5', 'h6',
    'header', 'hr', 'li', 'main', 'nav', 'ol', 'p', 'pre', 'section', 'table',
    'td', 'th', 'tr', 'ul',
}


def normalize_url(base_url: str, href: str) -> str:
    """
    Convert a relative URL to an absolute URL.

    Args:
        base_url: The base URL to resolve against
        href: The href attribute (may be relative or absolute)

    Returns:
        Absolute URL string
    """
    return urljoin(base_url, href)


def _is_hidden(tag: Tag) -> bool:
    if tag.name in _NON_TEXT_TAGS or tag.has_attr('hidden'):
        return True
    style = (tag.get('style') or '').replace(' ', '').lower()
    return 'display:none' in style or 'visibility:hidden' in style


def _collect_text(element: Tag, parts: List[str]) -> None:
    for child in element.children:
        if isinstance(child, Tag):
            if _is_hidden(child):
                continue
            block = child.name in _BLOCK_TAGS
            if block:
                parts.append(' ')
            _collect_text(child, parts)
            if block:
                parts.append(' ')
        elif isinstance(child, NavigableString) and not isinstance(child, Comment):
            parts.append(str(child))


def _read_text(element: Tag) -> str:
    """
    Rendered text of an element, on one line.

    Skips script, style and hidden children, separates block-level
    children, and leaves adjacent inline text joined as the browser shows it.
    """
    parts: List[str] = []
    _collect_text(element, parts)
    return _WHITESPACE_RE.sub(' ', ''.join(parts)).strip()


def _read_link(element, base_url: str) -> Optional[str]:
    href = (element.get('href') or '').strip()
    if not href:
        return None
    return normalize_url(base_url, href)


def extract_listing_rows(html: str, base_url: str,
                         profile: SiteProfile = DEFAULT_PROFILE) -> List[ListingRecord]:
    """
    Extract one record per listing row.

    A field whose element is missing from the row is left as None; the
    other fields of that row are unaffected.

    Args:
        html: Rendered HTML of the result page
        base_url: URL of the page, for resolving relative links
        profile: Site profile with the row and field selectors

    Returns:
        Records in document order
    """
    soup = BeautifulSoup(html, 'lxml')
    selectors = profile.selectors.to_dict()
    records = []

    for row in soup.select(profile.row_css):
        values = {}
        for field_name, css in selectors.items():
            element = row.select_one(css)
            if element is None:
                values[field_name] = None
            elif field_name in LINK_FIELDS:
                values[field_name] = _read_link(element, base_url)
            else:
                values[field_name] = _read_text(element)
        records.append(ListingRecord(**values))

    return records


def extract_next_page_url(html: str, base_url: str,
                          profile: SiteProfile = DEFAULT_PROFILE) -> Optional[str]:
    """
    Extract the next page link using the profile's next-page selector.

    Args:
        html: HTML content
        base_url: Base URL
        profile: Site profile with 'next_page_css'

    Returns:
        Absolute URL, or None if there is no usable next link
    """
    soup = BeautifulSoup(html, 'lxml')
    next_link = soup.select_one(profile.next_page_css)

    if not next_link:
        return None

    href = (next_link.get('href') or '').strip()
    if not href or href.startswith('#') or href.startswith('javascript:'):
        return None

    return normalize_url(base_url, href)


def get_selector_match_count(html: str, css_selector: str) -> int:
    """
    Count how many elements match a CSS selector.
    Useful for debugging and verbose mode.

    Args:
        html: HTML content
        css_selector: CSS selector to test

    Returns:
        Number of matching elements
    """
    soup = BeautifulSoup(html, 'lxml')
    matches = soup.select(css_selector)
    return len(matches)
