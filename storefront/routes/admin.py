import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, File, Form, UploadFile
from slugify import slugify
from sqlalchemy import func
from sqlmodel import Session, select

from storefront.constants.order_status import OrderStatus
from storefront.database import get_session
from storefront.dependencies.admin import require_admin
from storefront.dependencies.services import get_storage
from storefront.errors import NotFoundError, ProductNotFound, ValidationError
from storefront.models.category import Category
from storefront.models.entitlement import Entitlement
from storefront.models.order import Order
from storefront.models.product import Product
from storefront.models.user import User, UserRole
from storefront.schemas.orders_schemas import AdminStats
from storefront.schemas.product_schemas import AdminProductView
from storefront.services.storage import SignedUrlGateway

logger = logging.getLogger(__name__)

router = APIRouter()

MAX_PREVIEW_IMAGES = 5


def _category_or_404(session: Session, category_id: Optional[int]) -> Optional[Category]:
    if category_id is None:
        return None
    category = session.get(Category, category_id)
    if not category:
        raise NotFoundError("Category not found")
    return category


@router.get("/stats", response_model=AdminStats)
def admin_stats(
    session: Session = Depends(get_session),
    admin: User = Depends(require_admin),
):
    total_products = session.exec(select(func.count(Product.id))).one()
    total_orders = session.exec(
        select(func.count(Order.id)).where(Order.status == OrderStatus.paid)
    ).one()
    total_revenue = session.exec(
        select(func.coalesce(func.sum(Order.amount), 0)).where(Order.status == OrderStatus.paid)
    ).one()
    total_customers = session.exec(
        select(func.count(User.id)).where(User.role == UserRole.customer)
    ).one()

    return AdminStats(
        total_products=total_products,
        total_orders=total_orders,
        total_revenue=total_revenue,
        total_customers=total_customers,
    )


@router.get("/products", response_model=List[AdminProductView])
def admin_products(
    session: Session = Depends(get_session),
    storage: SignedUrlGateway = Depends(get_storage),
    admin: User = Depends(require_admin),
):
    products = session.exec(select(Product).order_by(Product.created_at.desc())).all()
    return [AdminProductView.from_product(p, storage) for p in products]


@router.post("/products", response_model=AdminProductView, status_code=201)
def create_product(
    title: str = Form(...),
    price: int = Form(...),
    description: str = Form(""),
    category_id: Optional[int] = Form(None),
    file: UploadFile = File(...),
    preview_images: Optional[List[UploadFile]] = File(None),
    session: Session = Depends(get_session),
    storage: SignedUrlGateway = Depends(get_storage),
    admin: User = Depends(require_admin),
):
    """Create a product; price is in paise. Files go to R2 under random keys."""
    if price <= 0:
        raise ValidationError("Price must be a positive amount in paise")

    preview_images = preview_images or []
    if len(preview_images) > MAX_PREVIEW_IMAGES:
        raise ValidationError(f"At most {MAX_PREVIEW_IMAGES} preview images")

    category = _category_or_404(session, category_id)

    file_key = storage.put(file.file, "products", file.filename or "file", file.content_type)
    preview_keys = [
        storage.put(image.file, "previews", image.filename or "preview", image.content_type)
        for image in preview_images
    ]

    product = Product(
        title=title,
        slug=slugify(title),
        description=description,
        category_id=category_id,
        price=price,
        file_key=file_key,
        file_name=file.filename or "file",
        file_size=file.size,
        preview_images=preview_keys,
    )

    session.add(product)
    session.commit()
    session.refresh(product)

    logger.info(f"Admin {admin.id} created product {product.id}")

    return AdminProductView.from_product(product, storage, category)


@router.put("/products/{product_id}", response_model=AdminProductView)
def update_product(
    product_id: int,
    title: Optional[str] = Form(None),
    description: Optional[str] = Form(None),
    price: Optional[int] = Form(None),
    category_id: Optional[int] = Form(None),
    is_active: Optional[bool] = Form(None),
    file: Optional[UploadFile] = File(None),
    preview_images: Optional[List[UploadFile]] = File(None),
    session: Session = Depends(get_session),
    storage: SignedUrlGateway = Depends(get_storage),
    admin: User = Depends(require_admin),
):
    """
    Partial update. Price changes apply to new intents only; existing orders
    keep the amount they were created with.
    """
    product = session.get(Product, product_id)
    if not product:
        raise ProductNotFound()

    if price is not None and price <= 0:
        raise ValidationError("Price must be a positive amount in paise")
    if preview_images and len(preview_images) > MAX_PREVIEW_IMAGES:
        raise ValidationError(f"At most {MAX_PREVIEW_IMAGES} preview images")

    if title is not None:
        product.title = title
        product.slug = slugify(title)
    if description is not None:
        product.description = description
    if price is not None:
        product.price = price
    if category_id is not None:
        _category_or_404(session, category_id)
        product.category_id = category_id
    if is_active is not None:
        product.is_active = is_active

    if file is not None:
        product.file_key = storage.put(file.file, "products", file.filename or "file", file.content_type)
        product.file_name = file.filename or "file"
        product.file_size = file.size
    if preview_images:
        product.preview_images = [
            storage.put(image.file, "previews", image.filename or "preview", image.content_type)
            for image in preview_images
        ]

    session.add(product)
    session.commit()
    session.refresh(product)

    logger.info(f"Admin {admin.id} updated product {product.id}")

    category = session.get(Category, product.category_id) if product.category_id else None
    return AdminProductView.from_product(product, storage, category)


@router.delete("/products/{product_id}")
def delete_product(
    product_id: int,
    session: Session = Depends(get_session),
    admin: User = Depends(require_admin),
):
    """Products with orders or owners are deactivated instead of removed."""
    product = session.get(Product, product_id)
    if not product:
        raise ProductNotFound()

    referenced = session.exec(select(Order.id).where(Order.product_id == product_id)).first() is not None
    referenced = referenced or session.exec(
        select(Entitlement.id).where(Entitlement.product_id == product_id)
    ).first() is not None

    if referenced:
        product.is_active = False
        session.add(product)
        session.commit()
        logger.info(f"Admin {admin.id} archived product {product_id}")
        return {"message": "Product archived"}

    session.delete(product)
    session.commit()
    logger.info(f"Admin {admin.id} deleted product {product_id}")
    return {"message": "Product deleted"}
