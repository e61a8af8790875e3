# mpms/core/slug.py
import re
import unicodedata
from typing import Callable

_NON_ALNUM = re.compile(r"[^a-z0-9]+")


def slugify(value: str) -> str:
    """'Website Redesign 2.0!' -> 'website-redesign-2-0'"""
    normalized = unicodedata.normalize("NFKD", value).encode("ascii", "ignore").decode("ascii")
    slug = _NON_ALNUM.sub("-", normalized.lower()).strip("-")
    return slug or "project"


def unique_slug(title: str, is_taken: Callable[[str], bool]) -> str:
    """
    Первый свободный вариант из base, base-1, base-2, ...
    `is_taken` проверяет кандидатов по порядку.
    """
    base = slugify(title)
    slug = base
    counter = 1
    while is_taken(slug):
        slug = f"{base}-{counter}"
        counter += 1
    return slug
