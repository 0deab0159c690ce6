from typing import Any, Dict, Iterable, List, Optional


def to_product_dto(
    row: Any,
    *,
    denominations: Optional[Iterable[Any]] = None,
    category: Optional[Any] = None,
) -> Dict:
    data = row.to_dict()
    data["denominations"] = [d.to_summary() for d in (denominations or [])]
    data["category"] = category.to_summary() if category is not None else None
    return data


def group_by(rows: Iterable[Any], key: str) -> Dict[str, List[Any]]:
    grouped: Dict[str, List[Any]] = {}
    for row in rows:
        grouped.setdefault(getattr(row, key), []).append(row)
    return grouped
