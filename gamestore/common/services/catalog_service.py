from typing import Dict, List, Optional
from uuid import uuid4

from sqlalchemy import or_

from ..errors import ConflictError, NotFoundError, ValidationError
from ..models.category import Category
from ..models.denomination import Denomination
from ..models.lifecycle import activate, deactivate
from ..models.product import Product
from ..utils.dto import group_by, to_product_dto
from ..utils.pagination import normalize_paging, pagination_meta
from ..utils.slug import slug_for
from ..utils.validators import ensure_decimal, ensure_int
from .logging import log_event


class CatalogService:
    """Catalog querying and admin mutations.

    Responsibilities:
    - List/search products with pagination, category and featured filters
    - Attach live denominations in one batch query per page
    - Keep slugs unique across name changes
    - Soft-delete with cascade from product to denominations
    """

    def __init__(self, session_factory):
        self._session_factory = session_factory

    # ------------------------------------------------------------------ queries

    def list_products(
        self,
        *,
        category_id: Optional[str] = None,
        search: Optional[str] = None,
        featured: bool = False,
        page=1,
        limit=10,
    ) -> Dict:
        p, lim = normalize_paging(page, limit)
        with self._session_factory() as session:
            q = session.query(Product).filter(Product.is_active.is_(True))
            if category_id:
                q = q.filter(Product.category_id == category_id)
            if search:
                like = f"%{search.strip()}%"
                q = q.filter(or_(Product.name.ilike(like), Product.description.ilike(like)))
            if featured:
                q = q.filter(Product.is_featured.is_(True))
            total = q.count()
            rows = (
                q.order_by(Product.sort_order.asc(), Product.created_at.desc())
                .offset((p - 1) * lim)
                .limit(lim)
                .all()
            )
            products = self._with_relations(session, rows)
            return {"products": products, "pagination": pagination_meta(p, lim, total)}

    def featured_products(self, limit: int = 8) -> List[Dict]:
        with self._session_factory() as session:
            rows = (
                session.query(Product)
                .filter(Product.is_active.is_(True), Product.is_featured.is_(True))
                .order_by(Product.sort_order.asc())
                .limit(limit)
                .all()
            )
            return self._with_relations(session, rows)

    def products_by_category_slug(self, slug: str, *, page=1, limit=10) -> Dict:
        p, lim = normalize_paging(page, limit)
        with self._session_factory() as session:
            category = (
                session.query(Category)
                .filter(Category.slug == slug, Category.is_active.is_(True))
                .first()
            )
            if not category:
                raise NotFoundError("Category not found")
            q = session.query(Product).filter(
                Product.category_id == category.id, Product.is_active.is_(True)
            )
            total = q.count()
            rows = q.order_by(Product.sort_order.asc()).offset((p - 1) * lim).limit(lim).all()
            return {
                "category": category.to_dict(),
                "products": self._with_relations(session, rows),
                "pagination": pagination_meta(p, lim, total),
            }

    def get_product(self, product_id: str) -> Dict:
        with self._session_factory() as session:
            product = session.get(Product, product_id)
            if not product or not product.is_active:
                raise NotFoundError("Product not found")
            denominations = (
                session.query(Denomination)
                .filter(Denomination.product_id == product.id, Denomination.is_active.is_(True))
                .order_by(Denomination.amount.asc())
                .all()
            )
            category = session.get(Category, product.category_id)
            return to_product_dto(product, denominations=denominations, category=category)

    def list_categories(self) -> List[Dict]:
        with self._session_factory() as session:
            rows = (
                session.query(Category)
                .filter(Category.is_active.is_(True))
                .order_by(Category.sort_order.asc())
                .all()
            )
            return [c.to_dict() for c in rows]

    def get_category(self, category_id: str) -> Dict:
        with self._session_factory() as session:
            category = session.get(Category, category_id)
            if not category or not category.is_active:
                raise NotFoundError("Category not found")
            return category.to_dict()

    def get_denomination(self, denomination_id: str) -> Dict:
        """Direct lookup, active or not (admin view)."""
        with self._session_factory() as session:
            denomination = session.get(Denomination, denomination_id)
            if not denomination:
                raise NotFoundError("Denomination not found")
            return denomination.to_dict()

    def admin_list_products(self, *, page=1, limit=20) -> Dict:
        p, lim = normalize_paging(page, limit, default_limit=20)
        with self._session_factory() as session:
            q = session.query(Product)
            total = q.count()
            rows = q.order_by(Product.created_at.desc()).offset((p - 1) * lim).limit(lim).all()
            return {
                "products": [r.to_dict() for r in rows],
                "pagination": pagination_meta(p, lim, total),
            }

    @staticmethod
    def _with_relations(session, rows: List[Product]) -> List[Dict]:
        if not rows:
            return []
        product_ids = [r.id for r in rows]
        denominations = (
            session.query(Denomination)
            .filter(Denomination.product_id.in_(product_ids), Denomination.is_active.is_(True))
            .order_by(Denomination.amount.asc())
            .all()
        )
        denom_map = group_by(denominations, "product_id")
        category_ids = {r.category_id for r in rows}
        categories = {
            c.id: c for c in session.query(Category).filter(Category.id.in_(category_ids)).all()
        }
        return [
            to_product_dto(r, denominations=denom_map.get(r.id, []), category=categories.get(r.category_id))
            for r in rows
        ]

    # ---------------------------------------------------------------- mutations

    @staticmethod
    def _ensure_unique_slug(session, model, slug: str, exclude_id: Optional[str] = None) -> None:
        q = session.query(model).filter(model.slug == slug)
        if exclude_id:
            q = q.filter(model.id != exclude_id)
        if q.first():
            raise ConflictError(f"{model.__name__} with similar name already exists")

    def create_category(self, *, name: str, description: str = "", image: str = "", sort_order: int = 0) -> Dict:
        slug = slug_for(name)
        with self._session_factory() as session:
            self._ensure_unique_slug(session, Category, slug)
            category = Category(
                id=str(uuid4()),
                name=name.strip(),
                slug=slug,
                description=description or "",
                image=image or "",
                sort_order=int(sort_order or 0),
                is_active=True,
            )
            session.add(category)
            session.flush()
            session.refresh(category)
            log_event("info", "category.created", category_id=category.id, slug=slug)
            return category.to_dict()

    def update_category(self, category_id: str, **fields) -> Dict:
        with self._session_factory() as session:
            category = session.get(Category, category_id)
            if not category:
                raise NotFoundError("Category not found")
            name = fields.get("name")
            if name:
                slug = slug_for(name)
                self._ensure_unique_slug(session, Category, slug, exclude_id=category.id)
                category.name = name.strip()
                category.slug = slug
            if fields.get("description") is not None:
                category.description = fields["description"]
            if fields.get("image") is not None:
                category.image = fields["image"]
            if fields.get("sort_order") is not None:
                category.sort_order = ensure_int(fields["sort_order"], "sortOrder")
            if fields.get("is_active") is not None:
                if fields["is_active"]:
                    activate(category)
                else:
                    deactivate(session, category)
            session.flush()
            session.refresh(category)
            return category.to_dict()

    def delete_category(self, category_id: str) -> None:
        with self._session_factory() as session:
            category = session.get(Category, category_id)
            if not category:
                raise NotFoundError("Category not found")
            deactivate(session, category)
            log_event("info", "category.deactivated", category_id=category_id)

    def create_product(
        self,
        *,
        name: str,
        category_id: str,
        description: str = "",
        short_description: str = "",
        image: str = "",
        images: Optional[List[str]] = None,
        is_featured: bool = False,
        sort_order: int = 0,
        denominations: Optional[List[Dict]] = None,
    ) -> Dict:
        slug = slug_for(name)
        with self._session_factory() as session:
            if not session.get(Category, category_id):
                raise ValidationError(
                    "Validation failed",
                    errors=[{"field": "categoryId", "message": f"Category not found: {category_id}"}],
                )
            self._ensure_unique_slug(session, Product, slug)
            product = Product(
                id=str(uuid4()),
                name=name.strip(),
                slug=slug,
                description=description or "",
                short_description=short_description or "",
                image=image or "",
                images=list(images or []),
                category_id=category_id,
                is_active=True,
                is_featured=bool(is_featured),
                sort_order=int(sort_order or 0),
            )
            session.add(product)
            created = [self._build_denomination(product.id, d) for d in (denominations or [])]
            session.add_all(created)
            session.flush()
            session.refresh(product)
            created.sort(key=lambda d: d.amount)
            log_event("info", "product.created", product_id=product.id, denominations=len(created))
            return to_product_dto(product, denominations=created)

    def update_product(self, product_id: str, **fields) -> Dict:
        with self._session_factory() as session:
            product = session.get(Product, product_id)
            if not product:
                raise NotFoundError("Product not found")
            name = fields.get("name")
            if name and name.strip() != product.name:
                slug = slug_for(name)
                self._ensure_unique_slug(session, Product, slug, exclude_id=product.id)
                product.name = name.strip()
                product.slug = slug
            for attr in ("description", "short_description", "image"):
                if fields.get(attr) is not None:
                    setattr(product, attr, fields[attr])
            if fields.get("images") is not None:
                product.images = list(fields["images"])
            if fields.get("category_id"):
                if not session.get(Category, fields["category_id"]):
                    raise ValidationError(
                        "Validation failed",
                        errors=[{"field": "categoryId", "message": f"Category not found: {fields['category_id']}"}],
                    )
                product.category_id = fields["category_id"]
            if fields.get("is_featured") is not None:
                product.is_featured = bool(fields["is_featured"])
            if fields.get("sort_order") is not None:
                product.sort_order = ensure_int(fields["sort_order"], "sortOrder")
            session.flush()
            session.refresh(product)
            return product.to_dict()

    def delete_product(self, product_id: str) -> int:
        """Soft delete; returns how many denominations were deactivated with it."""
        with self._session_factory() as session:
            product = session.get(Product, product_id)
            if not product:
                raise NotFoundError("Product not found")
            cascaded = deactivate(session, product)
            log_event("info", "product.deactivated", product_id=product_id, denominations=cascaded)
            return cascaded

    def add_denomination(self, product_id: str, payload: Dict) -> Dict:
        with self._session_factory() as session:
            product = session.get(Product, product_id)
            if not product:
                raise NotFoundError("Product not found")
            denomination = self._build_denomination(product.id, payload)
            session.add(denomination)
            session.flush()
            session.refresh(denomination)
            return denomination.to_dict()

    def update_denomination(self, denomination_id: str, payload: Dict) -> Dict:
        with self._session_factory() as session:
            denomination = session.get(Denomination, denomination_id)
            if not denomination:
                raise NotFoundError("Denomination not found")
            if payload.get("amount") is not None:
                denomination.amount = ensure_int(payload["amount"], "amount", minimum=1)
            if payload.get("price") is not None:
                denomination.price = ensure_decimal(payload["price"], "price", minimum=0)
            if payload.get("discount") is not None:
                denomination.discount = ensure_int(payload["discount"], "discount", minimum=0, maximum=100)
            if payload.get("isActive") is not None:
                if payload["isActive"]:
                    activate(denomination)
                else:
                    deactivate(session, denomination)
            session.flush()
            session.refresh(denomination)
            return denomination.to_dict()

    @staticmethod
    def _build_denomination(product_id: str, payload: Dict) -> Denomination:
        if not isinstance(payload, dict):
            raise ValidationError(
                "Validation failed",
                errors=[{"field": "denominations", "message": "each denomination must be an object"}],
            )
        return Denomination(
            id=str(uuid4()),
            product_id=product_id,
            amount=ensure_int(payload.get("amount"), "amount", minimum=1),
            price=ensure_decimal(payload.get("price"), "price", minimum=0),
            discount=ensure_int(payload.get("discount") or 0, "discount", minimum=0, maximum=100),
            is_active=True,
        )
