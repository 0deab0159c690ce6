"""Public catalog browsing plus admin-only category and product mutations."""

from __future__ import annotations

from flask import Blueprint, request

from ..common.errors import ValidationError
from ..common.utils.validators import (
    ensure_int,
    optional_bool,
    optional_str,
    parse_bool_arg,
    require_str,
)
from .gate import components, json_body, ok, require_admin


categories_bp = Blueprint("gamestore_categories", __name__, url_prefix="/api/categories")
products_bp = Blueprint("gamestore_products", __name__, url_prefix="/api/products")


def _catalog():
    return components()["catalog_service"]


@categories_bp.get("")
def list_categories():
    return ok({"categories": _catalog().list_categories()})


@categories_bp.get("/<category_id>")
def get_category(category_id: str):
    return ok({"category": _catalog().get_category(category_id)})


@categories_bp.post("")
@require_admin
def create_category():
    payload = json_body()
    category = _catalog().create_category(
        name=require_str(payload, "name"),
        description=optional_str(payload, "description"),
        image=optional_str(payload, "image"),
        sort_order=ensure_int(payload.get("sortOrder") or 0, "sortOrder"),
    )
    return ok({"category": category}, "Category created successfully", 201)


@categories_bp.put("/<category_id>")
@require_admin
def update_category(category_id: str):
    payload = json_body()
    category = _catalog().update_category(
        category_id,
        name=optional_str(payload, "name", None),
        description=optional_str(payload, "description", None),
        image=optional_str(payload, "image", None),
        sort_order=payload.get("sortOrder"),
        is_active=optional_bool(payload, "isActive"),
    )
    return ok({"category": category}, "Category updated successfully")


@categories_bp.delete("/<category_id>")
@require_admin
def delete_category(category_id: str):
    _catalog().delete_category(category_id)
    return ok(message="Category deleted successfully")


@products_bp.get("")
def list_products():
    args = request.args
    result = _catalog().list_products(
        category_id=args.get("categoryId") or None,
        search=args.get("search") or None,
        featured=parse_bool_arg(args.get("featured")),
        page=args.get("page"),
        limit=args.get("limit"),
    )
    return ok(result)


@products_bp.get("/featured")
def featured_products():
    return ok({"products": _catalog().featured_products()})


@products_bp.get("/category/<slug>")
def products_by_category(slug: str):
    result = _catalog().products_by_category_slug(
        slug, page=request.args.get("page"), limit=request.args.get("limit")
    )
    return ok(result)


@products_bp.get("/<product_id>")
def get_product(product_id: str):
    return ok({"product": _catalog().get_product(product_id)})


def _images(payload):
    images = payload.get("images")
    if images is None:
        return None
    if not isinstance(images, list) or not all(isinstance(i, str) for i in images):
        raise ValidationError("Validation failed", errors=[{"field": "images", "message": "images must be a list of strings"}])
    return images


@products_bp.post("")
@require_admin
def create_product():
    payload = json_body()
    denominations = payload.get("denominations") or []
    if not isinstance(denominations, list):
        raise ValidationError(
            "Validation failed", errors=[{"field": "denominations", "message": "denominations must be a list"}]
        )
    product = _catalog().create_product(
        name=require_str(payload, "name"),
        category_id=require_str(payload, "categoryId"),
        description=optional_str(payload, "description"),
        short_description=optional_str(payload, "shortDescription"),
        image=optional_str(payload, "image"),
        images=_images(payload),
        is_featured=bool(optional_bool(payload, "isFeatured")),
        sort_order=ensure_int(payload.get("sortOrder") or 0, "sortOrder"),
        denominations=denominations,
    )
    return ok({"product": product}, "Product created successfully", 201)


@products_bp.put("/<product_id>")
@require_admin
def update_product(product_id: str):
    payload = json_body()
    product = _catalog().update_product(
        product_id,
        name=optional_str(payload, "name", None),
        description=optional_str(payload, "description", None),
        short_description=optional_str(payload, "shortDescription", None),
        image=optional_str(payload, "image", None),
        images=_images(payload),
        category_id=optional_str(payload, "categoryId", None),
        is_featured=optional_bool(payload, "isFeatured"),
        sort_order=payload.get("sortOrder"),
    )
    return ok({"product": product}, "Product updated successfully")


@products_bp.delete("/<product_id>")
@require_admin
def delete_product(product_id: str):
    cascaded = _catalog().delete_product(product_id)
    return ok({"deactivatedDenominations": cascaded}, "Product deleted successfully")
