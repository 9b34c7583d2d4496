from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

from sqlalchemy import Select, func, select
from sqlalchemy.orm import Session

from stocksense.auth import UserSession
from stocksense.config import get_settings
from stocksense.models import Product, ProductStatus
from stocksense.schemas import InventoryStats, ProductCreate, ProductUpdate
from stocksense.services.inventory import derive_status

logger = logging.getLogger(__name__)


class ProductNotFoundError(LookupError):
    def __init__(self, product_id: int) -> None:
        super().__init__(f"Product {product_id} not found")
        self.product_id = product_id


class DuplicateSkuError(ValueError):
    def __init__(self, sku: str) -> None:
        super().__init__(f"SKU already exists: {sku}")
        self.sku = sku


@dataclass
class ProductPage:
    items: list[Product]
    total: int


def _build_product_query(
    search: str | None,
    category: str | None,
    status_filter: ProductStatus | None,
) -> Select[tuple[Product]]:
    stmt = select(Product).where(Product.is_deleted.is_(False))

    if search:
        term = search.strip()
        stmt = stmt.where(
            Product.name.icontains(term, autoescape=True)
            | Product.sku.icontains(term, autoescape=True)
            | Product.description.icontains(term, autoescape=True)
        )

    if category:
        stmt = stmt.where(Product.category == category)

    if status_filter is not None:
        stmt = stmt.where(Product.status == status_filter)

    return stmt


def list_products(
    db: Session,
    search: str | None = None,
    category: str | None = None,
    status_filter: ProductStatus | None = None,
    limit: int | None = None,
    offset: int = 0,
) -> ProductPage:
    stmt = _build_product_query(search, category, status_filter)
    total = int(db.scalar(select(func.count()).select_from(stmt.subquery())) or 0)

    stmt = stmt.order_by(Product.created_at.desc(), Product.id.desc())
    if limit:
        stmt = stmt.offset(offset).limit(limit)

    return ProductPage(items=list(db.scalars(stmt).all()), total=total)


def get_product(db: Session, product_id: int) -> Product:
    product = db.get(Product, product_id)
    if not product or product.is_deleted:
        raise ProductNotFoundError(product_id)
    return product


def _ensure_sku_available(db: Session, sku: str, exclude_id: int | None = None) -> None:
    stmt = select(Product.id).where(Product.sku == sku)
    if exclude_id is not None:
        stmt = stmt.where(Product.id != exclude_id)
    if db.scalar(stmt) is not None:
        raise DuplicateSkuError(sku)


def create_product(db: Session, payload: ProductCreate, session: UserSession) -> Product:
    _ensure_sku_available(db, payload.sku)

    product = Product(
        **payload.model_dump(),
        status=derive_status(payload.quantity, payload.min_quantity),
        created_by_id=session.user_id,
        updated_by_id=session.user_id,
    )
    db.add(product)
    db.commit()
    db.refresh(product)

    logger.info("Product %s (%s) created by %s", product.id, product.sku, session.username)
    return product


def update_product(db: Session, product_id: int, payload: ProductUpdate, session: UserSession) -> Product:
    product = get_product(db, product_id)

    updates = payload.model_dump(exclude_unset=True)
    if updates.get("sku") is not None:
        _ensure_sku_available(db, updates["sku"], exclude_id=product.id)

    for key, value in updates.items():
        if value is None and key not in {"description", "location"}:
            continue
        setattr(product, key, value)

    product.status = derive_status(product.quantity, product.min_quantity)
    product.updated_by_id = session.user_id
    product.updated_at = datetime.now(timezone.utc)

    db.add(product)
    db.commit()
    db.refresh(product)

    logger.info("Product %s updated by %s", product.id, session.username)
    return product


def delete_product(db: Session, product_id: int, session: UserSession) -> None:
    product = get_product(db, product_id)

    now = datetime.now(timezone.utc)
    product.is_deleted = True
    product.deleted_at = now
    product.deleted_by_id = session.user_id
    product.updated_by_id = session.user_id
    product.updated_at = now

    db.add(product)
    db.commit()
    logger.info("Product %s soft-deleted by %s", product.id, session.username)


def get_stats(db: Session, now: datetime | None = None) -> InventoryStats:
    now = now or datetime.now(timezone.utc)
    cutoff = now - timedelta(days=get_settings().recently_added_days)
    active = Product.is_deleted.is_(False)

    def _count(*conditions) -> int:
        return int(db.scalar(select(func.count(Product.id)).where(active, *conditions)) or 0)

    return InventoryStats(
        total_items=_count(),
        low_stock=_count(Product.status == ProductStatus.LOW_STOCK),
        out_of_stock=_count(Product.status == ProductStatus.OUT_OF_STOCK),
        recently_added=_count(Product.created_at >= cutoff),
    )
