from typing import List, Optional

from fastapi import APIRouter, Depends
from sqlmodel import Session, select

from storefront.database import get_session
from storefront.errors import ProductNotFound
from storefront.models.category import Category
from storefront.models.product import Product
from storefront.models.user import User
from storefront.schemas.product_schemas import DownloadResponse, ProductView
from storefront.services.downloads import DownloadAuthorizer
from storefront.services.storage import SignedUrlGateway
from storefront.dependencies.services import get_download_authorizer, get_storage
from storefront.utils.token import get_current_user

router = APIRouter()


def _categories_by_id(session: Session, products: List[Product]) -> dict:
    ids = {p.category_id for p in products if p.category_id}
    if not ids:
        return {}
    rows = session.exec(select(Category).where(Category.id.in_(ids))).all()
    return {c.id: c for c in rows}


@router.get("", response_model=List[ProductView])
def list_products(
    category: Optional[str] = None,
    session: Session = Depends(get_session),
    storage: SignedUrlGateway = Depends(get_storage),
):
    query = select(Product).where(Product.is_active == True)  # noqa: E712

    if category:
        query = query.join(Category, Category.id == Product.category_id).where(Category.slug == category)

    products = session.exec(query.order_by(Product.created_at.desc())).all()
    categories = _categories_by_id(session, products)

    return [
        ProductView.from_product(p, storage, categories.get(p.category_id))
        for p in products
    ]


@router.get("/{product_id}", response_model=ProductView)
def get_product(
    product_id: int,
    session: Session = Depends(get_session),
    storage: SignedUrlGateway = Depends(get_storage),
):
    product = session.get(Product, product_id)
    if not product or not product.is_active:
        raise ProductNotFound()

    category = session.get(Category, product.category_id) if product.category_id else None
    return ProductView.from_product(product, storage, category)


@router.get("/{product_id}/download", response_model=DownloadResponse)
def download_product(
    product_id: int,
    authorizer: DownloadAuthorizer = Depends(get_download_authorizer),
    current_user: User = Depends(get_current_user),
):
    """Signed attachment link for a purchased product (admins bypass)."""
    grant = authorizer.authorize_download(current_user, product_id)

    return DownloadResponse(
        download_url=grant.download_url,
        file_name=grant.file_name,
        expires_at=grant.expires_at,
    )
