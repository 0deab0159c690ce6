"""
Soft-delete lifecycle for catalog entities.

Nothing in the catalog is hard-deleted. Deactivation goes through
``deactivate`` so that the cascade table is the single place that decides
which children follow their parent.
"""
from typing import Dict, List, Tuple, Type

from sqlalchemy.orm import Session

from .base import Base
from .category import Category
from .denomination import Denomination
from .product import Product


# parent model -> [(child model, foreign key attribute on child)]
CASCADE_RULES: Dict[Type[Base], List[Tuple[Type[Base], str]]] = {
    Category: [],
    Product: [(Denomination, "product_id")],
    Denomination: [],
}


def deactivate(session: Session, entity: Base) -> int:
    """Mark ``entity`` inactive and cascade per ``CASCADE_RULES``.

    Returns the number of child rows deactivated.
    """
    entity.is_active = False
    cascaded = 0
    for child_model, fk_attr in CASCADE_RULES.get(type(entity), []):
        children = (
            session.query(child_model)
            .filter(getattr(child_model, fk_attr) == entity.id, child_model.is_active.is_(True))
            .all()
        )
        for child in children:
            cascaded += deactivate(session, child) + 1
    return cascaded


def activate(entity: Base) -> None:
    """Reactivation does not cascade; children are re-enabled one by one."""
    entity.is_active = True
