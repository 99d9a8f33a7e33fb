import logging
from typing import List, Optional

from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, select

from storefront.models.base import utcnow
from storefront.models.entitlement import Entitlement

logger = logging.getLogger(__name__)

_INSERTS = {
    "postgresql": pg_insert,
    "sqlite": sqlite_insert,
}


def has_entitlement(session: Session, user_id: int, product_id: int) -> bool:
    return session.exec(
        select(Entitlement.id)
        .where(Entitlement.user_id == user_id)
        .where(Entitlement.product_id == product_id)
    ).first() is not None


def entitled_product_ids(session: Session, user_id: int) -> List[int]:
    return list(session.exec(
        select(Entitlement.product_id)
        .where(Entitlement.user_id == user_id)
        .order_by(Entitlement.granted_at)
    ).all())


def _grant_with_savepoint(session: Session, user_id: int, product_id: int, order_id: Optional[str]) -> bool:
    try:
        with session.begin_nested():
            session.add(Entitlement(user_id=user_id, product_id=product_id, order_id=order_id))
            session.flush()
    except IntegrityError:
        # unique (user_id, product_id): someone else granted it first
        return False
    return True


def grant_entitlement(session: Session, user_id: int, product_id: int, order_id: Optional[str] = None) -> bool:
    """
    Add product_id to the user's entitlement set.

    Set-union semantics: granting twice leaves one row. Returns True only
    when a new row was written. Does not commit.

    Postgres and SQLite use ``INSERT ... ON CONFLICT DO NOTHING``. Other
    dialects insert inside a savepoint and read a unique violation as
    "already granted".
    """
    dialect = session.get_bind().dialect.name
    insert = _INSERTS.get(dialect)

    if insert is None:
        granted = _grant_with_savepoint(session, user_id, product_id, order_id)
    else:
        stmt = (
            insert(Entitlement)
            .values(user_id=user_id, product_id=product_id, order_id=order_id, granted_at=utcnow())
            .on_conflict_do_nothing(index_elements=["user_id", "product_id"])
        )
        granted = session.execute(stmt).rowcount == 1

    if granted:
        logger.info(f"Granted product {product_id} to user {user_id} (order={order_id})")
    return granted
