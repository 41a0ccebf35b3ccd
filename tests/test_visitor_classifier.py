"""
Tests for visitor classification (device, browser, OS, geo, referrer).
"""

from types import SimpleNamespace

import pytest

from linkhub.services import visitor_classifier as classifier_module
from linkhub.services.visitor_classifier import (
    VisitorClassifier,
    VisitorProfile,
    device_category,
    referrer_domain,
)

CHROME_WINDOWS = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)
SAFARI_IPHONE = (
    "Mozilla/5.0 (iPhone; CPU iPhone OS 17_0 like Mac OS X) AppleWebKit/605.1.15 "
    "(KHTML, like Gecko) Version/17.0 Mobile/15E148 Safari/604.1"
)
SAFARI_IPAD = (
    "Mozilla/5.0 (iPad; CPU OS 16_0 like Mac OS X) AppleWebKit/605.1.15 "
    "(KHTML, like Gecko) Version/16.0 Mobile/15E148 Safari/604.1"
)


class TestDeviceCategory:
    """Test mapping of device families onto device buckets."""

    def test_mobile_families(self):
        assert device_category("iPhone") == "mobile"
        assert device_category("Generic Android") == "mobile"
        assert device_category("Generic Smartphone Mobile") == "mobile"

    def test_tablet_families(self):
        assert device_category("iPad") == "tablet"
        assert device_category("Generic Tablet") == "tablet"

    def test_everything_else_is_desktop(self):
        """Unknown devices, including the 'other' fallback, count as desktop."""
        assert device_category("Other") == "desktop"
        assert device_category("other") == "desktop"
        assert device_category("Mac") == "desktop"
        assert device_category(None) == "desktop"
        assert device_category("") == "desktop"


class TestReferrerDomain:

    def test_hostname_is_extracted(self):
        assert referrer_domain("https://news.ycombinator.com/item?id=1") == "news.ycombinator.com"
        assert referrer_domain("http://t.co/abc") == "t.co"

    def test_missing_or_unparsable_is_direct(self):
        assert referrer_domain(None) == "direct"
        assert referrer_domain("") == "direct"
        assert referrer_domain("direct") == "direct"
        assert referrer_domain("not a url") == "direct"


class TestUserAgentParsing:

    def test_desktop_chrome(self):
        profile = VisitorClassifier().classify(CHROME_WINDOWS, None)
        assert profile.device == "desktop"
        assert profile.browser == "Chrome"
        assert profile.os == "Windows"

    def test_iphone(self):
        profile = VisitorClassifier().classify(SAFARI_IPHONE, None)
        assert profile.device == "mobile"
        assert profile.browser == "Mobile Safari"
        assert profile.os == "iOS"

    def test_ipad(self):
        profile = VisitorClassifier().classify(SAFARI_IPAD, None)
        assert profile.device == "tablet"
        assert profile.os == "iOS"

    def test_missing_user_agent_falls_back(self):
        """No User-Agent header: unknown browser/OS, counted as desktop."""
        for user_agent in (None, ""):
            profile = VisitorClassifier().classify(user_agent, None)
            assert profile == VisitorProfile(
                device="desktop",
                browser="Unknown",
                os="Unknown",
                country="Unknown",
                city="Unknown",
            )

    def test_parser_error_falls_back(self, monkeypatch):
        def broken_parse(user_agent):
            raise RuntimeError("parser exploded")

        monkeypatch.setattr(classifier_module, "parse_user_agent", broken_parse)

        assert VisitorClassifier().parse_user_agent(CHROME_WINDOWS) == ("other", "Unknown", "Unknown")


class TestGeolocation:

    def test_known_address(self, classifier):
        profile = classifier.classify(CHROME_WINDOWS, "8.8.8.8")
        assert profile.country == "US"
        assert profile.city == "Mountain View"

    def test_unknown_address(self, classifier):
        assert classifier.locate("10.0.0.1") == ("Unknown", "Unknown")

    def test_no_database_configured(self):
        assert VisitorClassifier().locate("8.8.8.8") == ("Unknown", "Unknown")

    def test_missing_address(self, classifier, geo_reader):
        assert classifier.locate(None) == ("Unknown", "Unknown")
        assert geo_reader.lookups == 0

    def test_invalid_address(self):
        class RejectingReader:
            def city(self, ip_address):
                raise ValueError(f"'{ip_address}' does not appear to be an IPv4 or IPv6 address")

        assert VisitorClassifier(RejectingReader()).locate("unknown") == ("Unknown", "Unknown")

    def test_reader_failure_is_logged_not_raised(self, caplog):
        class BrokenReader:
            def city(self, ip_address):
                raise OSError("database file is corrupt")

        with caplog.at_level("WARNING"):
            result = VisitorClassifier(BrokenReader()).locate("8.8.8.8")

        assert result == ("Unknown", "Unknown")
        assert "GeoIP lookup failed" in caplog.text

    def test_partial_geo_data(self):
        class CountryOnlyReader:
            def city(self, ip_address):
                return SimpleNamespace(
                    country=SimpleNamespace(iso_code="DE"),
                    city=SimpleNamespace(name=None),
                )

        assert VisitorClassifier(CountryOnlyReader()).locate("1.2.3.4") == ("DE", "Unknown")

    def test_close_releases_reader(self, classifier, geo_reader):
        classifier.close()
        assert geo_reader.closed
        assert classifier.geo_reader is None
        assert classifier.locate("8.8.8.8") == ("Unknown", "Unknown")


@pytest.mark.parametrize("user_agent,ip_address", [
    (CHROME_WINDOWS, "8.8.8.8"),
    (SAFARI_IPHONE, "81.2.69.142"),
    (None, None),
    ("garbage/1.0", "unknown"),
])
def test_classification_is_deterministic(classifier, user_agent, ip_address):
    """Same inputs always give the same profile."""
    assert classifier.classify(user_agent, ip_address) == classifier.classify(user_agent, ip_address)
