"""
Redirect resolver for click-tracking website links.

Directory sites wrap outbound website links in a tracking URL whose real
destination sits in a query parameter. Most of these can be unwrapped
locally; ad-click destinations only reveal the target at request time, so
those get a single probe request whose first Location header is used.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, Optional
from urllib.parse import urlparse, parse_qs

from curl_cffi.requests import AsyncSession

import scraper_config
from listing_models import NOT_AVAILABLE
from profile_loader import RedirectConfig

logger = logging.getLogger(__name__)

# probe(url, timeout) -> first Location header or None
Probe = Callable[[str, float], Awaitable[Optional[str]]]

# Seconds allowed on top of the request timeout before the probe is abandoned
PROBE_GRACE = 5.0


@dataclass
class Resolution:
    url: Optional[str]
    probed: bool = False


def _host_matches(hostname: Optional[str], domain: str) -> bool:
    if not hostname:
        return False
    hostname = hostname.lower()
    domain = domain.lower()
    return hostname == domain or hostname.endswith('.' + domain)


def is_redirect_wrapper(url: str, config: RedirectConfig) -> bool:
    """Check if a URL is one of the site's click-tracking wrappers."""
    try:
        parsed = urlparse(url)
    except ValueError:
        return False
    if not _host_matches(parsed.hostname, config.host):
        return False
    prefix = config.path_prefix.rstrip('/')
    return parsed.path == prefix or parsed.path.startswith(prefix + '/')


def unwrap_redirect(url: str, config: RedirectConfig) -> Optional[str]:
    """
    Return the nested destination of a wrapper URL.

    Returns None if the URL is not a wrapper or has no target parameter.
    """
    if not is_redirect_wrapper(url, config):
        return None
    params = parse_qs(urlparse(url).query)
    values = params.get(config.target_param)
    if not values or not values[0].strip():
        return None
    return values[0].strip()


def is_ad_click(url: str, config: RedirectConfig) -> bool:
    try:
        return _host_matches(urlparse(url).hostname, config.ad_click_host)
    except ValueError:
        return False


async def fetch_redirect_location(url: str, timeout: float = scraper_config.PROBE_TIMEOUT) -> Optional[str]:
    """
    Issue one GET without following redirects and return its Location header.

    Raises whatever curl_cffi raises; callers decide the fallback.
    """
    async with AsyncSession() as session:
        response = await session.get(
            url,
            allow_redirects=False,
            timeout=timeout,
            impersonate=scraper_config.IMPERSONATE
        )
        return response.headers.get('location')


class RedirectResolver:
    """Turns a raw website reference into the best destination URL known."""

    def __init__(self, config: Optional[RedirectConfig] = None,
                 probe: Optional[Probe] = None,
                 timeout: Optional[float] = None):
        self.config = config or RedirectConfig()
        self.probe = probe or fetch_redirect_location
        self.timeout = timeout if timeout is not None else scraper_config.PROBE_TIMEOUT

    async def resolve(self, raw_ref: Optional[str]) -> Optional[str]:
        return (await self.resolve_detailed(raw_ref)).url

    async def resolve_detailed(self, raw_ref: Optional[str]) -> Resolution:
        """
        Resolve a raw reference, reporting whether a network probe was made.

        Never raises: on any failure the best URL known so far is returned.
        """
        if not raw_ref or raw_ref == NOT_AVAILABLE:
            return Resolution(raw_ref)

        nested = unwrap_redirect(raw_ref, self.config)
        if nested is None:
            return Resolution(raw_ref)

        if not is_ad_click(nested, self.config):
            return Resolution(nested)

        try:
            location = await asyncio.wait_for(
                self.probe(nested, self.timeout),
                timeout=self.timeout + PROBE_GRACE
            )
        except Exception as e:
            logger.warning(f"Redirect probe failed for {nested}: {e}")
            return Resolution(nested, probed=True)

        return Resolution(location or nested, probed=True)
