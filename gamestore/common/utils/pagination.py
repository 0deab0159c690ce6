import math
from typing import Dict, Tuple


def normalize_paging(page, limit, *, default_limit: int = 10, max_limit: int = 100) -> Tuple[int, int]:
    p = _to_int(page)
    lim = _to_int(limit)
    p = p if p and p > 0 else 1
    lim = lim if lim and lim > 0 else default_limit
    lim = min(lim, max_limit)
    return p, lim


def pagination_meta(page: int, limit: int, total: int) -> Dict[str, int]:
    return {
        "page": page,
        "limit": limit,
        "total": total,
        "totalPages": math.ceil(total / limit) if limit else 0,
    }


def _to_int(value):
    if value is None or value == "":
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None
