import logging
from dataclasses import dataclass
from datetime import datetime

from sqlalchemy import update
from sqlmodel import Session

from storefront.errors import NotEntitled, ProductNotFound
from storefront.models.product import Product
from storefront.models.user import User
from storefront.services.entitlements import has_entitlement
from storefront.services.storage import SignedUrlGateway, SignMode

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DownloadGrant:
    download_url: str
    file_name: str
    expires_at: datetime


class DownloadAuthorizer:
    def __init__(self, session: Session, storage: SignedUrlGateway):
        self.session = session
        self.storage = storage

    def authorize_download(self, user: User, product_id: int) -> DownloadGrant:
        product = self.session.get(Product, product_id)
        if not product:
            raise ProductNotFound()

        if not user.is_admin and not has_entitlement(self.session, user.id, product.id):
            logger.info(f"Download of product {product_id} denied for user {user.id}")
            raise NotEntitled()

        signed = self.storage.sign(product.file_key, SignMode.attachment, product.file_name)

        # approximate counter, concurrent downloads may interleave
        self.session.execute(
            update(Product)
            .where(Product.id == product.id)
            .values(downloads=Product.downloads + 1)
            .execution_options(synchronize_session=False)
        )
        self.session.commit()

        return DownloadGrant(
            download_url=signed.url,
            file_name=product.file_name,
            expires_at=signed.expires_at,
        )
