"""
Visitor Classifier

Turns the raw request data of a redirect (User-Agent header and client IP)
into the dimensions the click analytics are broken down by: device category,
browser, operating system, country and city.

Design Decisions:
- User-agent parsing via the `user-agents` library (ua-parser regexes, local)
- Geolocation via an offline MaxMind database read with `geoip2`; no network
  calls, so classification never blocks the redirect path
- Every failure has a documented fallback and is never raised to the caller
- Unknown devices count as desktop: traffic without a recognizable device
  string is overwhelmingly desktop browsers
"""

import logging
from dataclasses import dataclass
from typing import Optional, Tuple
from urllib.parse import urlparse

import geoip2.database
import geoip2.errors
from user_agents import parse as parse_user_agent

logger = logging.getLogger(__name__)

UNKNOWN = "Unknown"
DIRECT = "direct"

DEVICE_MOBILE = "mobile"
DEVICE_DESKTOP = "desktop"
DEVICE_TABLET = "tablet"
DEVICE_OTHER = "other"
DEVICE_TYPES = (DEVICE_MOBILE, DEVICE_DESKTOP, DEVICE_TABLET, DEVICE_OTHER)

# Families used when the user agent is missing or cannot be parsed
FALLBACK_FAMILIES = ("other", UNKNOWN, UNKNOWN)

_MOBILE_MARKERS = ("iphone", "android", "mobile")
_TABLET_MARKERS = ("ipad", "tablet")


@dataclass(frozen=True)
class VisitorProfile:
    """Classification of one visitor."""
    device: str
    browser: str
    os: str
    country: str
    city: str


def device_category(device_family: Optional[str]) -> str:
    """
    Map a parsed device family onto one of the device buckets.

    Example:
        device_category("iPhone") -> "mobile"
        device_category("iPad") -> "tablet"
        device_category("Other") -> "desktop"
    """
    family = (device_family or DEVICE_OTHER).lower()
    if any(marker in family for marker in _MOBILE_MARKERS):
        return DEVICE_MOBILE
    if any(marker in family for marker in _TABLET_MARKERS):
        return DEVICE_TABLET
    return DEVICE_DESKTOP


def referrer_domain(referrer: Optional[str]) -> str:
    """
    Reduce a Referer header to its hostname.

    Returns "direct" when the header is absent or has no parsable host.
    """
    if not referrer or referrer == DIRECT:
        return DIRECT
    try:
        hostname = urlparse(referrer).hostname
    except ValueError:
        return DIRECT
    return hostname or DIRECT


class VisitorClassifier:
    """
    Classifies visitors from their user agent and IP address.

    The GeoIP reader is optional; without one every visitor is located in
    "Unknown". Instances are cheap apart from the reader, which is opened
    once at startup (see linkhub.core.classifier_manager).
    """

    def __init__(self, geo_reader=None):
        """
        Args:
            geo_reader: Object with a `city(ip)` method returning a geoip2
                City response, normally a geoip2.database.Reader
        """
        self.geo_reader = geo_reader

    @classmethod
    def from_database(cls, path: str) -> "VisitorClassifier":
        """Open a MaxMind City database (.mmdb) and build a classifier on it."""
        return cls(geo_reader=geoip2.database.Reader(path))

    def close(self) -> None:
        """Release the GeoIP database, if one is open."""
        if self.geo_reader is not None and hasattr(self.geo_reader, "close"):
            self.geo_reader.close()
        self.geo_reader = None

    def parse_user_agent(self, user_agent: Optional[str]) -> Tuple[str, str, str]:
        """
        Parse a User-Agent header into (device family, browser, os).

        Missing headers and parser errors yield ("other", "Unknown", "Unknown").
        """
        if not user_agent:
            return FALLBACK_FAMILIES
        try:
            parsed = parse_user_agent(user_agent)
        except Exception:
            logger.debug("Could not parse user agent %r", user_agent, exc_info=True)
            return FALLBACK_FAMILIES

        return (
            parsed.device.family or FALLBACK_FAMILIES[0],
            parsed.browser.family or UNKNOWN,
            parsed.os.family or UNKNOWN,
        )

    def locate(self, ip_address: Optional[str]) -> Tuple[str, str]:
        """
        Resolve an IP address to (country ISO code, city name).

        Returns ("Unknown", "Unknown") on a miss or any lookup failure.
        """
        if self.geo_reader is None or not ip_address:
            return UNKNOWN, UNKNOWN
        try:
            response = self.geo_reader.city(ip_address)
        except geoip2.errors.AddressNotFoundError:
            return UNKNOWN, UNKNOWN
        except ValueError:
            # Not an IP address (e.g. "unknown" or a hostname)
            return UNKNOWN, UNKNOWN
        except Exception:
            logger.warning("GeoIP lookup failed for %s", ip_address, exc_info=True)
            return UNKNOWN, UNKNOWN

        country = response.country.iso_code if response.country else None
        city = response.city.name if response.city else None
        return country or UNKNOWN, city or UNKNOWN

    def classify(self, user_agent: Optional[str], ip_address: Optional[str]) -> VisitorProfile:
        """
        Classify a visitor.

        Args:
            user_agent: Raw User-Agent header (may be None)
            ip_address: Client IP address (may be None)

        Returns:
            VisitorProfile; identical inputs always produce identical profiles
        """
        device_family, browser, os_family = self.parse_user_agent(user_agent)
        country, city = self.locate(ip_address)
        return VisitorProfile(
            device=device_category(device_family),
            browser=browser,
            os=os_family,
            country=country,
            city=city,
        )
