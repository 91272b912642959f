# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Service: Tag aggregation: pure computation, no side effects.
"""

from collections import Counter
from itertools import chain
from typing import Iterable


def normalize_tags(tags: Iterable[str]) -> list[str]:
    """Trim, drop blanks and collapse duplicates, keeping first-seen order."""
    seen: list[str] = []
    for tag in tags:
        tag = tag.strip()
        if tag and tag not in seen:
            seen.append(tag)
    return seen


def count_tags(tag_lists: Iterable[Iterable[str]]) -> dict[str, int]:
    """
    Fresh tag -> occurrence count over every ticket's tag list.
    Full recompute: the result depends only on the multiset of tags.
    """
    return dict(Counter(chain.from_iterable(tag_lists)))
