"""
Infrastructure adapter: relational ``admin`` table (via SQLAlchemy) -> ICredentialStore.
See docs/Architecture.md (Infrastructure layer) for the architectural rationale.

Works with any SQLAlchemy URL; sqlite is the local default and MySQL is
reached with ``mysql+pymysql://``.

Passwords are compared as stored, in plaintext. This mirrors the existing
admin table and is flagged at startup; it is not a hashing scheme.
"""

import logging
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    Integer,
    MetaData,
    String,
    Table,
    create_engine,
    select,
    update,
)
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError

from src.domain.entities.admin_account import AdminAccount
from src.domain.errors import ConsoleError
from src.domain.ports.credential_store_port import ICredentialStore

logger = logging.getLogger(__name__)

metadata = MetaData()

admin_table = Table(
    "admin",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("username", String(255), nullable=False, unique=True),
    Column("password", String(255), nullable=False),
    Column("firstname", String(255), nullable=False, default=""),
    Column("lastname", String(255), nullable=False, default=""),
    Column("active", Boolean, nullable=False, default=True),
    Column("last_login", DateTime, nullable=True),
)


class CredentialStoreError(ConsoleError):
    """The credential database could not be queried."""


class SqlCredentialStore(ICredentialStore):
    def __init__(self, engine: Engine) -> None:
        self._engine = engine
        logger.warning("Credential store compares plaintext passwords")

    @classmethod
    def from_url(cls, url: str, **engine_kwargs) -> "SqlCredentialStore":
        return cls(create_engine(url, **engine_kwargs))

    def create_schema(self) -> None:
        metadata.create_all(self._engine)

    def find_active_account(self, username: str, password: str) -> Optional[AdminAccount]:
        query = select(
            admin_table.c.id,
            admin_table.c.username,
            admin_table.c.firstname,
            admin_table.c.lastname,
            admin_table.c.active,
        ).where(
            admin_table.c.username == username,
            admin_table.c.password == password,
            admin_table.c.active.is_(True),
        )
        try:
            with self._engine.connect() as conn:
                row = conn.execute(query).first()
        except SQLAlchemyError as exc:
            logger.error("Credential lookup failed", exc_info=True)
            raise CredentialStoreError("Database connection error") from exc
        if row is None:
            return None
        return AdminAccount(
            id=row.id,
            username=row.username,
            first_name=row.firstname or "",
            last_name=row.lastname or "",
            active=bool(row.active),
        )

    def record_login(self, account_id: int) -> None:
        stmt = (
            update(admin_table)
            .where(admin_table.c.id == account_id)
            .values(last_login=datetime.now(timezone.utc).replace(tzinfo=None))
        )
        try:
            with self._engine.begin() as conn:
                conn.execute(stmt)
        except SQLAlchemyError as exc:
            logger.error("Failed to stamp last login", exc_info=True)
            raise CredentialStoreError("Database connection error") from exc

    def add_account(
        self,
        username: str,
        password: str,
        first_name: str = "",
        last_name: str = "",
        active: bool = True,
    ) -> int:
        """Insert an account row; used by provisioning scripts and tests."""
        with self._engine.begin() as conn:
            result = conn.execute(
                admin_table.insert().values(
                    username=username,
                    password=password,
                    firstname=first_name,
                    lastname=last_name,
                    active=active,
                )
            )
            return int(result.inserted_primary_key[0])

    def last_login(self, account_id: int) -> Optional[datetime]:
        with self._engine.connect() as conn:
            return conn.execute(
                select(admin_table.c.last_login).where(admin_table.c.id == account_id)
            ).scalar_one_or_none()
