from __future__ import annotations

from typing import Iterable


def diff(a: Iterable[str], b: Iterable[str]) -> list[str]:
    """Return the items of ``a`` that are not in ``b``.

    Order and duplicates of ``a`` are kept as-is.
    """
    seen = set(b)
    return [item for item in a if item not in seen]
