import logging
from datetime import datetime
from typing import List, Optional

from storefront.errors import StorageUnconfigured
from storefront.models.category import Category
from storefront.models.product import Product
from storefront.schemas.payment_schemas import CamelModel
from storefront.services.storage import SignedUrlGateway, SignMode

logger = logging.getLogger(__name__)


class CategoryRef(CamelModel):
    id: int
    name: str
    slug: str


class ProductView(CamelModel):
    """
    Public projection of a Product.

    Built explicitly from the stored row. Object keys never leave the
    server, only signed preview URLs do.
    """

    id: int
    title: str
    slug: str
    description: str
    price: int
    category: Optional[CategoryRef] = None
    preview_image_urls: List[str] = []
    file_name: str
    file_size: Optional[int] = None
    downloads: int
    created_at: datetime

    @classmethod
    def from_product(
        cls,
        product: Product,
        storage: SignedUrlGateway,
        category: Optional[Category] = None,
    ) -> "ProductView":
        try:
            preview_urls = [
                storage.sign(key, SignMode.preview).url
                for key in (product.preview_images or [])
            ]
        except StorageUnconfigured:
            logger.warning(f"Storage unconfigured, product {product.id} served without previews")
            preview_urls = []

        return cls(
            id=product.id,
            title=product.title,
            slug=product.slug,
            description=product.description,
            price=product.price,
            category=CategoryRef(id=category.id, name=category.name, slug=category.slug) if category else None,
            preview_image_urls=preview_urls,
            file_name=product.file_name,
            file_size=product.file_size,
            downloads=product.downloads,
            created_at=product.created_at,
        )


class AdminProductView(ProductView):
    is_active: bool

    @classmethod
    def from_product(cls, product, storage, category=None) -> "AdminProductView":
        base = ProductView.from_product(product, storage, category)
        return cls(**base.model_dump(), is_active=product.is_active)


class DownloadResponse(CamelModel):
    download_url: str
    file_name: str
    expires_at: datetime
