"""
Listing extractors.
"""

from .nautic_extractor import SAMPLE_LISTINGS, NauticExtractor, parse_listings

__all__ = ["NauticExtractor", "SAMPLE_LISTINGS", "parse_listings"]
