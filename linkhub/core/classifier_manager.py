"""
Visitor Classifier Manager

This module manages the global visitor classifier instance.
The classifier is initialized once per application instance and shared across requests.

Design:
- Singleton pattern: One classifier (and one open GeoIP database) per instance
- Initialized on application startup, closed on shutdown
- A missing or unreadable GeoIP database is not fatal: the classifier runs
  without geolocation and every visitor is located in "Unknown"
"""

import logging
from typing import Optional

from linkhub.core.setting import settings
from linkhub.services.visitor_classifier import VisitorClassifier

logger = logging.getLogger(__name__)

# Global classifier instance (initialized on startup)
_classifier: Optional[VisitorClassifier] = None


def get_classifier() -> VisitorClassifier:
    """
    Get the global visitor classifier.

    Used as a FastAPI dependency. Falls back to a classifier without
    geolocation if startup has not run (e.g. in scripts).
    """
    global _classifier
    if _classifier is None:
        _classifier = VisitorClassifier()
    return _classifier


def initialize_classifier() -> None:
    """
    Initialize the global visitor classifier.

    Opens the GeoIP database configured in GEOIP_DATABASE_PATH, if any.
    """
    global _classifier

    if _classifier is not None and _classifier.geo_reader is not None:
        logger.warning("Visitor classifier already initialized")
        return

    path = settings.GEOIP_DATABASE_PATH
    if not path:
        _classifier = VisitorClassifier()
        logger.info("Visitor classifier initialized without GeoIP database")
        return

    try:
        _classifier = VisitorClassifier.from_database(path)
        logger.info(f"Visitor classifier initialized with GeoIP database: {path}")
    except Exception as e:
        logger.error(f"Failed to open GeoIP database {path}: {str(e)}", exc_info=True)
        _classifier = VisitorClassifier()


def shutdown_classifier() -> None:
    """Close the GeoIP database and drop the global classifier."""
    global _classifier

    if _classifier is not None:
        logger.info("Shutting down visitor classifier")
        _classifier.close()
        _classifier = None
