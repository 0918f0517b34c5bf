"""
auth/store.py -- SQLAlchemy Core persistence layer for staff accounts.

Pattern: Repository + Data Mapper (same as gym/store.py).
StaffStore is the repository; _row_to_staff is the mapper. The lockout state
machine and route code never touch SQL directly -- they call the methods
below, which is what lets the in-memory default be swapped for a real
database by changing the URL alone.

Contract used by auth/lockout.py:
  get_by_username(), get_by_id(), persist_attempt_state(), create_staff()

Security:
  All queries use bound parameters. No f-strings in SQL.
  hashed_password stays inside StaffAccount; response models never include it.

IDs: the table uses SQLite AUTOINCREMENT so a deleted staff ID is never handed
out again for the lifetime of the database.

Layer rule: no imports from api/, core/, or gym/.
"""

from __future__ import annotations

from datetime import date, datetime, timezone

from sqlalchemy import Column, Float, Integer, MetaData, String, Table, Text, create_engine, func, select
from sqlalchemy.engine import Engine

from auth.models import StaffAccount

_DEFAULT_DB_URL = "sqlite:///file:gymdesk_auth?mode=memory&cache=shared&uri=true"

# ---------------------------------------------------------------------------
# Schema
# ---------------------------------------------------------------------------

_metadata = MetaData()

_staff = Table(
    "staff",
    _metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("username", String(100), nullable=False, unique=True),
    Column("hashed_password", Text, nullable=False),
    Column("role", String(30), nullable=False),  # no server default: role is always explicit
    Column("full_name", String(250), nullable=False),
    Column("email", String(150), nullable=False, unique=True),
    Column("phone", String(11), nullable=False),
    Column("birth_date", String(10), nullable=False),
    Column("cpf", String(11)),
    Column("job_title", String(100), nullable=False),
    Column("hire_date", String(10), nullable=False),
    Column("cref", String(50)),
    Column("salary", Float, nullable=False, server_default="0"),
    Column("created_at", String(32), nullable=False),
    Column("failed_attempts", Integer, nullable=False, server_default="0"),
    Column("locked", Integer, nullable=False, server_default="0"),  # boolean stored as 0/1
    sqlite_autoincrement=True,
)

# Columns update_staff() may touch. Attempt state and identity are excluded:
# the lockout machine and unlock() own those.
_UPDATABLE_FIELDS = frozenset(
    {"full_name", "phone", "birth_date", "cpf", "job_title", "role", "hire_date", "cref", "salary", "hashed_password"}
)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------


class StaffStore:
    """Repository for StaffAccount entities.

    Usage:
        store = StaffStore()
        account = store.create_staff(StaffAccount(username="admin", role=Role.ADMIN, hashed_password=...))
        store.get_by_username("admin")
        store.close()
    """

    def __init__(self, db_url: str = _DEFAULT_DB_URL) -> None:
        connect_args: dict = {}
        if db_url.startswith("sqlite"):
            connect_args["check_same_thread"] = False
        self.engine: Engine = create_engine(db_url, connect_args=connect_args)
        _metadata.create_all(self.engine)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def has_users(self) -> bool:
        """Return True if at least one staff record exists."""
        with self.engine.connect() as conn:
            result = conn.execute(select(func.count()).select_from(_staff)).scalar()
        return (result or 0) > 0

    def get_by_username(self, username: str) -> StaffAccount | None:
        """Look up a staff account by exact username (case-sensitive). Returns None if not found."""
        with self.engine.connect() as conn:
            row = conn.execute(_staff.select().where(_staff.c.username == username)).fetchone()
        return _row_to_staff(row) if row is not None else None

    def get_by_id(self, staff_id: int) -> StaffAccount | None:
        """Look up a staff account by primary key. Returns None if not found."""
        with self.engine.connect() as conn:
            row = conn.execute(_staff.select().where(_staff.c.id == staff_id)).fetchone()
        return _row_to_staff(row) if row is not None else None

    def email_exists(self, email: str) -> bool:
        with self.engine.connect() as conn:
            row = conn.execute(select(_staff.c.id).where(_staff.c.email == email)).fetchone()
        return row is not None

    def list_staff(self) -> list[StaffAccount]:
        """Return all staff accounts ordered by ID."""
        with self.engine.connect() as conn:
            rows = conn.execute(_staff.select().order_by(_staff.c.id)).fetchall()
        return [_row_to_staff(r) for r in rows]

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def create_staff(self, account: StaffAccount) -> StaffAccount:
        """Insert a new staff account and return it as stored (ID assigned).

        The caller hashes the password first; this method stores whatever is in
        hashed_password verbatim. New accounts always start unlocked with zero
        failed attempts, whatever the passed-in object says.

        Raises sqlalchemy.exc.IntegrityError if the username or email already
        exists.
        """
        with self.engine.connect() as conn:
            result = conn.execute(
                _staff.insert().values(
                    username=account.username,
                    hashed_password=account.hashed_password,
                    role=account.role.value,
                    full_name=account.full_name,
                    email=account.email,
                    phone=account.phone,
                    birth_date=account.birth_date,
                    cpf=account.cpf,
                    job_title=account.job_title,
                    hire_date=account.hire_date or date.today().isoformat(),
                    cref=account.cref,
                    salary=account.salary,
                    created_at=_now_iso(),
                    failed_attempts=0,
                    locked=0,
                )
            )
            conn.commit()
            staff_id = result.inserted_primary_key[0]
        created = self.get_by_id(staff_id)
        assert created is not None
        return created

    def persist_attempt_state(self, username: str, failed_attempts: int, locked: bool) -> None:
        """Write the lockout machine's counters for one account.

        Synchronous: the row is committed before this method returns, so the
        next attempt (serialized by LoginGuard) reads the new values.
        """
        with self.engine.connect() as conn:
            conn.execute(
                _staff.update()
                .where(_staff.c.username == username)
                .values(failed_attempts=failed_attempts, locked=1 if locked else 0)
            )
            conn.commit()

    def unlock(self, staff_id: int) -> bool:
        """Administrative reset: clear the lock flag and the attempt counter.

        This is the only way out of the locked state. Returns True if a row was
        updated, False if staff_id was not found.
        """
        with self.engine.connect() as conn:
            result = conn.execute(
                _staff.update().where(_staff.c.id == staff_id).values(failed_attempts=0, locked=0)
            )
            conn.commit()
        return result.rowcount > 0

    def update_staff(self, staff_id: int, **fields) -> bool:
        """Update profile fields on an existing staff account.

        Accepted fields: see _UPDATABLE_FIELDS. Unknown keys raise ValueError
        rather than being silently ignored. role may be a Role or its string.

        Returns True if a row was updated, False if staff_id was not found.
        """
        unknown = set(fields) - _UPDATABLE_FIELDS
        if unknown:
            raise ValueError(f"Unknown staff fields: {sorted(unknown)!r}")
        if "role" in fields:
            fields["role"] = getattr(fields["role"], "value", fields["role"])
        if not fields:
            return self.get_by_id(staff_id) is not None
        with self.engine.connect() as conn:
            result = conn.execute(_staff.update().where(_staff.c.id == staff_id).values(**fields))
            conn.commit()
        return result.rowcount > 0

    def delete_staff(self, staff_id: int) -> bool:
        """Permanently delete a staff account. Returns True if deleted, False if not found.

        Tokens already issued to the account stay valid until they expire.
        """
        with self.engine.connect() as conn:
            result = conn.execute(_staff.delete().where(_staff.c.id == staff_id))
            conn.commit()
        return result.rowcount > 0

    def close(self) -> None:
        self.engine.dispose()


# ---------------------------------------------------------------------------
# Row mapper (Data Mapper pattern)
# ---------------------------------------------------------------------------


def _row_to_staff(row) -> StaffAccount:
    return StaffAccount(
        id=row.id,
        username=row.username,
        hashed_password=row.hashed_password,
        role=row.role,
        full_name=row.full_name,
        email=row.email,
        phone=row.phone,
        birth_date=row.birth_date,
        cpf=row.cpf,
        job_title=row.job_title,
        hire_date=row.hire_date,
        cref=row.cref,
        salary=row.salary,
        created_at=row.created_at,
        failed_attempts=row.failed_attempts,
        locked=bool(row.locked),
    )
