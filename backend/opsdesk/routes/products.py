# Overview: Product catalogue endpoints, including direct stock edits.

from flask import Blueprint, current_app, g, request

from ..decorators import require_auth, require_permission
from ..extensions import db
from ..responses import created, error, from_exception, paginated, success
from ..services import catalog_service
from ..services.concurrency import commit_session
from ..validation import OpsdeskError, optional_int, page_args


products_bp = Blueprint("products", __name__, url_prefix="/api/products")


@products_bp.route("", methods=["GET"])
@require_auth
@require_permission("inventory_view", "inventory_manage")
def list_products():
    """Query: page, pageSize, keyword, category, status, lowStock=1"""
    try:
        page, page_size = page_args(request.args)
        products, total = catalog_service.list_products(
            keyword=request.args.get("keyword") or None,
            category=request.args.get("category") or None,
            status=optional_int(request.args.get("status"), "status"),
            low_stock=request.args.get("lowStock") in ("1", "true"),
            page=page,
            page_size=page_size,
        )
        return paginated([p.to_dict() for p in products], total, page, page_size)
    except OpsdeskError as e:
        return from_exception(e)


@products_bp.route("/all", methods=["GET"])
@require_auth
def all_products():
    return success(catalog_service.active_products())


@products_bp.route("/categories", methods=["GET"])
@require_auth
def categories():
    return success(catalog_service.categories())


@products_bp.route("/<int:product_id>", methods=["GET"])
@require_auth
@require_permission("inventory_view", "inventory_manage")
def get_product(product_id: int):
    try:
        return success(catalog_service.get_product(product_id).to_dict())
    except OpsdeskError as e:
        return from_exception(e)


@products_bp.route("", methods=["POST"])
@require_auth
@require_permission("inventory_manage")
def create_product():
    """
    Request body:
    {
        "name": str, "sku"?: str, "category"?, "unit"?, "price"?,
        "stock"?: int >= 0, "minStock"?: int >= 0, "description"?, "image"?, "status"?: 0|1
    }
    """
    data = request.get_json(silent=True) or {}

    try:
        product = catalog_service.create_product(data, created_by=g.current_user.id)
        commit_session()
        return created(product.to_dict(), "Product created")

    except OpsdeskError as e:
        db.session.rollback()
        return from_exception(e)
    except Exception:
        db.session.rollback()
        current_app.logger.exception("Failed to create product")
        return error("Internal server error", 500)


@products_bp.route("/<int:product_id>", methods=["PUT"])
@require_auth
@require_permission("inventory_manage")
def update_product(product_id: int):
    data = request.get_json(silent=True) or {}

    try:
        product = catalog_service.update_product(catalog_service.get_product(product_id), data)
        commit_session()
        return success(product.to_dict(), "Product updated")

    except OpsdeskError as e:
        db.session.rollback()
        return from_exception(e)
    except Exception:
        db.session.rollback()
        current_app.logger.exception("Failed to update product")
        return error("Internal server error", 500)


@products_bp.route("/<int:product_id>", methods=["DELETE"])
@require_auth
@require_permission("inventory_manage")
def delete_product(product_id: int):
    try:
        catalog_service.delete_product(catalog_service.get_product(product_id))
        commit_session()
        return success(None, "Product deleted")

    except OpsdeskError as e:
        db.session.rollback()
        return from_exception(e)
    except Exception:
        db.session.rollback()
        current_app.logger.exception("Failed to delete product")
        return error("Internal server error", 500)


@products_bp.route("/batch-stock", methods=["POST"])
@require_auth
@require_permission("inventory_manage")
def batch_stock():
    """Request body: {"items": [{"id": int, "stock": int >= 0}, ...]}"""
    data = request.get_json(silent=True) or {}

    try:
        updated = catalog_service.batch_set_stock(data.get("items"))
        commit_session()
        return success({"updated": updated}, "Stock updated")

    except OpsdeskError as e:
        db.session.rollback()
        return from_exception(e)
    except Exception:
        db.session.rollback()
        current_app.logger.exception("Failed to batch update stock")
        return error("Internal server error", 500)
