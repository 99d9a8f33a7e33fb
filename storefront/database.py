from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel, create_engine, Session
from storefront.config import settings


def _build_engine(url: str):
    if url.startswith("sqlite"):
        # one shared connection so an in-memory database survives across sessions
        return create_engine(
            url,
            echo=False,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
    return create_engine(
        url,
        echo=False,
        pool_pre_ping=True,      # checks dead connections
        pool_recycle=1800        # refresh every 30 min
    )


engine = _build_engine(settings.database_url)


def create_db_and_tables():
    from storefront.models import user, category, product, order, entitlement  # noqa: F401
    SQLModel.metadata.create_all(engine)


def get_session():
    with Session(engine) as session:
        yield session
