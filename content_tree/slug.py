import re
from typing import Iterable, Optional

from .config import settings

_CANONICAL_ID = re.compile(r"^[0-9a-fA-F]{24}$")
_NON_ALNUM = re.compile(r"[^a-z0-9]+")


def slugify(text: Optional[str], max_length: Optional[int] = None) -> str:
    """Create URL-friendly slug from a display name

    Args:
        text: Text to convert
        max_length: Truncation length (default: SLUG_MAX_LENGTH)

    Returns:
        Lowercase slug with non-alphanumeric runs collapsed to single hyphens
    """
    if not text:
        return ""
    limit = max_length or settings.SLUG_MAX_LENGTH
    slug = _NON_ALNUM.sub("-", str(text).strip().lower()).strip("-")
    return slug[:limit].rstrip("-")


def is_canonical_id(token: Optional[str]) -> bool:
    """True when the token has the shape of a 24-hex-character ObjectId"""
    return bool(token) and bool(_CANONICAL_ID.match(token))


def matches_token(record, token: str) -> bool:
    token_lower = token.strip().lower()
    return (
        record.id == token
        or slugify(record.name) == token_lower
        or record.name.lower() == token_lower
    )


def find_by_id_or_slug(records: Iterable, token: Optional[str]):
    """Return every record matching ``token`` by id, slug or name, in input order"""
    if not token:
        return []
    return [record for record in records if matches_token(record, token)]
