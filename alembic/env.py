from logging.config import fileConfig

from alembic import context
from sqlalchemy import pool, create_engine

from app.core.config import settings
from app.db.session import Base

# Every model module must be imported so its table lands in Base.metadata
from app.models.user import User  # noqa: F401
from app.models.event import Event  # noqa: F401
from app.models.ticket_tier import TicketTier  # noqa: F401
from app.models.event_staff import EventStaff  # noqa: F401
from app.models.staff_allocation import StaffTierAllocation  # noqa: F401
from app.models.guest_contact import GuestContact  # noqa: F401
from app.models.order import Order  # noqa: F401
from app.models.ticket import Ticket  # noqa: F401
from app.models.staff_sale import StaffSale  # noqa: F401
from app.models.email_log import EmailLog  # noqa: F401
from app.models.audit_log import AuditLog  # noqa: F401

config = context.config

# alembic.ini leaves sqlalchemy.url empty; the app settings own the database URL
config.set_main_option("sqlalchemy.url", settings.DATABASE_URL)

if config.config_file_name is not None:
    fileConfig(config.config_file_name)

target_metadata = Base.metadata


def run_migrations_offline() -> None:
    """Emit SQL to stdout without a live connection."""
    context.configure(
        url=config.get_main_option("sqlalchemy.url"),
        target_metadata=target_metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
        compare_type=True,
    )

    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    connectable = create_engine(config.get_main_option("sqlalchemy.url"), poolclass=pool.NullPool)

    with connectable.connect() as connection:
        context.configure(
            connection=connection,
            target_metadata=target_metadata,
            compare_type=True,
        )

        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
