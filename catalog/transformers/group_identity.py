"""
Group identity for product families.

Two schemes live here and must not be mixed up:

- ``group_key``: the grouping key. A readable slug of the base name
  ("anchor-swivel"), deterministic across runs, and the only identity the
  grouping engine uses. Collisions between unrelated products are a known
  heuristic limitation.
- ``storage_group_id``: an opaque MD5-based surrogate ("grp_1a2b...") stored
  next to the key for database-side joins. Never used to decide grouping.
"""

import hashlib
import re

from .variant_extractor import extract_variant_info

GROUP_KEY_MAX_LENGTH = 50

_NON_ALNUM_RE = re.compile(r"[^a-z0-9]+")


def group_key(base_name: str) -> str:
    """Slugify a base name into its group key."""
    slug = _NON_ALNUM_RE.sub("-", base_name.lower()).strip("-")
    return slug[:GROUP_KEY_MAX_LENGTH]


def group_key_for_title(title: str) -> str:
    """Group key of the product family a listing title belongs to."""
    return group_key(extract_variant_info(title).base_name)


def storage_group_id(base_name: str) -> str:
    """Hash-based surrogate id used by the persistence layer."""
    digest = hashlib.md5(base_name.lower().strip().encode("utf-8")).hexdigest()
    return f"grp_{digest[:16]}"
