from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, DeclarativeBase, scoped_session


from settings import DATABASE_URL


def build_engine(url: str):
    # sqlite uses its own pool classes, which reject the queue pool sizing
    if url.startswith("postgresql"):
        return create_engine(url, pool_size=20, max_overflow=0, pool_timeout=300)
    return create_engine(url)


engine = build_engine(DATABASE_URL)
db = sessionmaker(engine, future=True)
factory_session = scoped_session(db)


class Base(DeclarativeBase):
    pass


# define all model for alembic migration
from models.OrderItem import OrderItem  # NOQA
from models.Voucher import Voucher  # NOQA
from models.VoucherUsage import VoucherUsage  # NOQA
