import logging
from typing import Optional

from fastapi import APIRouter, Depends
from slugify import slugify
from sqlalchemy import update
from sqlmodel import Session, select

from storefront.database import get_session
from storefront.dependencies.admin import require_admin
from storefront.errors import ConflictError, NotFoundError
from storefront.models.category import Category
from storefront.models.product import Product
from storefront.models.user import User
from storefront.schemas.category_schemas import CategoryCreate, CategoryResponse, CategoryUpdate

logger = logging.getLogger(__name__)

router = APIRouter()


def _ensure_slug_free(session: Session, slug: str, category_id: Optional[int] = None):
    existing = session.exec(select(Category).where(Category.slug == slug)).first()
    if existing and existing.id != category_id:
        raise ConflictError("Category already exists")


@router.post("", response_model=CategoryResponse, status_code=201)
def create_category(
    payload: CategoryCreate,
    session: Session = Depends(get_session),
    admin: User = Depends(require_admin),
):
    slug = slugify(payload.name)
    _ensure_slug_free(session, slug)

    category = Category(name=payload.name, slug=slug, description=payload.description)
    session.add(category)
    session.commit()
    session.refresh(category)

    logger.info(f"Admin {admin.id} created category {category.id} ({slug})")
    return CategoryResponse.from_category(category)


@router.put("/{category_id}", response_model=CategoryResponse)
def update_category(
    category_id: int,
    payload: CategoryUpdate,
    session: Session = Depends(get_session),
    admin: User = Depends(require_admin),
):
    category = session.get(Category, category_id)
    if not category:
        raise NotFoundError("Category not found")

    if payload.name is not None:
        slug = slugify(payload.name)
        _ensure_slug_free(session, slug, category.id)
        category.name = payload.name
        category.slug = slug
    if payload.description is not None:
        category.description = payload.description

    session.add(category)
    session.commit()
    session.refresh(category)
    return CategoryResponse.from_category(category)


@router.delete("/{category_id}")
def delete_category(
    category_id: int,
    session: Session = Depends(get_session),
    admin: User = Depends(require_admin),
):
    category = session.get(Category, category_id)
    if not category:
        raise NotFoundError("Category not found")

    # products stay listed, just uncategorized
    session.execute(
        update(Product)
        .where(Product.category_id == category_id)
        .values(category_id=None)
        .execution_options(synchronize_session=False)
    )
    session.delete(category)
    session.commit()

    logger.info(f"Admin {admin.id} deleted category {category_id}")
    return {"message": "Category deleted"}
