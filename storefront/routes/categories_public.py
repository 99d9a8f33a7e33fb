from typing import List

from fastapi import APIRouter, Depends
from sqlmodel import Session, select

from storefront.database import get_session
from storefront.models.category import Category
from storefront.schemas.category_schemas import CategoryResponse

router = APIRouter()


# ---------- LIST ALL CATEGORIES ----------
@router.get("", response_model=List[CategoryResponse], summary="List all categories")
def list_categories(session: Session = Depends(get_session)):
    categories = session.exec(select(Category).order_by(Category.created_at.desc())).all()
    return [CategoryResponse.from_category(c) for c in categories]
