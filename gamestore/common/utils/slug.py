import re

from ..errors import ValidationError

_NON_SLUG = re.compile(r"[^a-z0-9]+")


def slugify(name: str) -> str:
    """Lowercase, collapse every run outside ``[a-z0-9]`` into ``-``, trim hyphens.

    ``slugify(slugify(x)) == slugify(x)`` for every input.
    """
    return _NON_SLUG.sub("-", (name or "").lower()).strip("-")


def slug_for(name: str) -> str:
    slug = slugify(name)
    if not slug:
        raise ValidationError(
            "Validation failed",
            errors=[{"field": "name", "message": "name must contain letters or digits"}],
        )
    return slug
