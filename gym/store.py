"""
gym/store.py -- SQLAlchemy-backed persistence layer for gym records.

Uses SQLAlchemy Core (not ORM) so the dataclasses in gym/models.py remain the
authoritative domain representation. The default URL is a shared in-memory
SQLite database; swapping it for PostgreSQL is a connection string change,
not a rewrite.

Pattern: Repository + Data Mapper. GymStore is the repository (one clean
interface per entity). The _row_to_* functions are the mappers. Route handlers
never touch SQL directly.

IDs are sequential per table and never reused (SQLite AUTOINCREMENT).

Security: all queries use bound parameters. No f-strings in SQL.

Usage:
    store = GymStore()
    plan_id = store.create_plan(plan)
    student_id = store.create_student(student)
    store.create_checkin(Checkin(student_id=student_id, registered_by=1))
    store.list_checkins_for_student(student_id)
    store.close()
"""

import json
from dataclasses import asdict
from datetime import date, datetime, timezone
from typing import Optional

from sqlalchemy import Boolean, Column, Float, Integer, MetaData, String, Table, Text, create_engine
from sqlalchemy.engine import Engine

from gym.models import Address, Checkin, Plan, Student

_DEFAULT_DB_URL = "sqlite:///file:gymdesk_gym?mode=memory&cache=shared&uri=true"

# ---------------------------------------------------------------------------
# Schema
# ---------------------------------------------------------------------------

metadata = MetaData()

_students = Table(
    "students",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("full_name", String(250), nullable=False),
    Column("email", String(150), nullable=False, unique=True),
    Column("phone", String(11), nullable=False),
    Column("birth_date", String(10), nullable=False),
    Column("cpf", String(11)),
    Column("plan_id", Integer),
    Column("start_date", String(10), nullable=False),
    Column("address", Text, nullable=False),  # JSON object serialized as text
    Column("medical_notes", Text),
    Column("created_at", String(10), nullable=False),
    sqlite_autoincrement=True,
)

_plans = Table(
    "plans",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("name", String(100), nullable=False),
    Column("modalities", Text, nullable=False),  # JSON array serialized as text
    Column("price", Float, nullable=False),
    Column("duration_days", Integer, nullable=False),
    Column("benefits", Text, nullable=False),  # JSON array serialized as text
    Column("active", Boolean, nullable=False, server_default="1"),
    Column("created_at", String(10), nullable=False),
    sqlite_autoincrement=True,
)

_checkins = Table(
    "checkins",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("student_id", Integer, nullable=False),
    Column("checked_in_at", String(32), nullable=False),
    Column("note", String(500)),
    Column("registered_by", Integer),
    sqlite_autoincrement=True,
)

_STUDENT_FIELDS = frozenset(
    {"full_name", "phone", "birth_date", "cpf", "plan_id", "start_date", "address", "medical_notes"}
)
_PLAN_FIELDS = frozenset({"name", "modalities", "price", "duration_days", "benefits", "active"})


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _today() -> str:
    return date.today().isoformat()


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def _check_fields(fields: dict, allowed: frozenset, entity: str) -> None:
    unknown = set(fields) - allowed
    if unknown:
        raise ValueError(f"Unknown {entity} fields: {sorted(unknown)!r}")


class GymStore:
    """Repository for Student, Plan and Checkin entities."""

    def __init__(self, db_url: str = _DEFAULT_DB_URL) -> None:
        connect_args: dict = {}
        if db_url.startswith("sqlite"):
            connect_args["check_same_thread"] = False
        self.engine: Engine = create_engine(db_url, connect_args=connect_args)
        metadata.create_all(self.engine)

    # ------------------------------------------------------------------
    # Students
    # ------------------------------------------------------------------

    def create_student(self, student: Student) -> int:
        """Insert a student and return the assigned ID.

        Raises sqlalchemy.exc.IntegrityError if the email is already taken.
        """
        with self.engine.connect() as conn:
            result = conn.execute(
                _students.insert().values(
                    full_name=student.full_name,
                    email=student.email,
                    phone=student.phone,
                    birth_date=student.birth_date,
                    cpf=student.cpf,
                    plan_id=student.plan_id,
                    start_date=student.start_date or _today(),
                    address=json.dumps(asdict(student.address)),
                    medical_notes=student.medical_notes,
                    created_at=_today(),
                )
            )
            conn.commit()
            return result.inserted_primary_key[0]

    def get_student(self, student_id: int) -> Optional[Student]:
        with self.engine.connect() as conn:
            row = conn.execute(_students.select().where(_students.c.id == student_id)).fetchone()
        return _row_to_student(row) if row is not None else None

    def get_student_by_email(self, email: str) -> Optional[Student]:
        with self.engine.connect() as conn:
            row = conn.execute(_students.select().where(_students.c.email == email)).fetchone()
        return _row_to_student(row) if row is not None else None

    def list_students(self) -> list[Student]:
        with self.engine.connect() as conn:
            rows = conn.execute(_students.select().order_by(_students.c.id)).fetchall()
        return [_row_to_student(r) for r in rows]

    def update_student(self, student_id: int, **fields) -> bool:
        """Update mutable student fields. address must be a full Address.

        Returns True if a row was updated, False if student_id was not found.
        """
        _check_fields(fields, _STUDENT_FIELDS, "student")
        if "address" in fields:
            fields["address"] = json.dumps(asdict(fields["address"]))
        if not fields:
            return self.get_student(student_id) is not None
        with self.engine.connect() as conn:
            result = conn.execute(_students.update().where(_students.c.id == student_id).values(**fields))
            conn.commit()
        return result.rowcount > 0

    def delete_student(self, student_id: int) -> bool:
        """Delete a student. Check-in history is kept for auditing."""
        with self.engine.connect() as conn:
            result = conn.execute(_students.delete().where(_students.c.id == student_id))
            conn.commit()
        return result.rowcount > 0

    # ------------------------------------------------------------------
    # Plans
    # ------------------------------------------------------------------

    def create_plan(self, plan: Plan) -> int:
        with self.engine.connect() as conn:
            result = conn.execute(
                _plans.insert().values(
                    name=plan.name,
                    modalities=json.dumps(plan.modalities),
                    price=plan.price,
                    duration_days=plan.duration_days,
                    benefits=json.dumps(plan.benefits),
                    active=plan.active,
                    created_at=_today(),
                )
            )
            conn.commit()
            return result.inserted_primary_key[0]

    def get_plan(self, plan_id: int) -> Optional[Plan]:
        with self.engine.connect() as conn:
            row = conn.execute(_plans.select().where(_plans.c.id == plan_id)).fetchone()
        return _row_to_plan(row) if row is not None else None

    def list_plans(self) -> list[Plan]:
        with self.engine.connect() as conn:
            rows = conn.execute(_plans.select().order_by(_plans.c.id)).fetchall()
        return [_row_to_plan(r) for r in rows]

    def update_plan(self, plan_id: int, **fields) -> bool:
        """Update plan fields. The ID and created_at never change."""
        _check_fields(fields, _PLAN_FIELDS, "plan")
        for key in ("modalities", "benefits"):
            if key in fields:
                fields[key] = json.dumps(fields[key])
        if not fields:
            return self.get_plan(plan_id) is not None
        with self.engine.connect() as conn:
            result = conn.execute(_plans.update().where(_plans.c.id == plan_id).values(**fields))
            conn.commit()
        return result.rowcount > 0

    def delete_plan(self, plan_id: int) -> bool:
        with self.engine.connect() as conn:
            result = conn.execute(_plans.delete().where(_plans.c.id == plan_id))
            conn.commit()
        return result.rowcount > 0

    # ------------------------------------------------------------------
    # Check-ins
    # ------------------------------------------------------------------

    def create_checkin(self, checkin: Checkin) -> int:
        """Insert a check-in and return its ID. The caller verifies the student exists."""
        with self.engine.connect() as conn:
            result = conn.execute(
                _checkins.insert().values(
                    student_id=checkin.student_id,
                    checked_in_at=checkin.checked_in_at or _now_iso(),
                    note=checkin.note,
                    registered_by=checkin.registered_by,
                )
            )
            conn.commit()
            return result.inserted_primary_key[0]

    def get_checkin(self, checkin_id: int) -> Optional[Checkin]:
        with self.engine.connect() as conn:
            row = conn.execute(_checkins.select().where(_checkins.c.id == checkin_id)).fetchone()
        return _row_to_checkin(row) if row is not None else None

    def list_checkins(self) -> list[Checkin]:
        with self.engine.connect() as conn:
            rows = conn.execute(_checkins.select().order_by(_checkins.c.id)).fetchall()
        return [_row_to_checkin(r) for r in rows]

    def list_checkins_for_student(self, student_id: int) -> list[Checkin]:
        """Return a student's check-ins, oldest first."""
        with self.engine.connect() as conn:
            rows = conn.execute(
                _checkins.select().where(_checkins.c.student_id == student_id).order_by(_checkins.c.id)
            ).fetchall()
        return [_row_to_checkin(r) for r in rows]

    def delete_checkin(self, checkin_id: int) -> bool:
        with self.engine.connect() as conn:
            result = conn.execute(_checkins.delete().where(_checkins.c.id == checkin_id))
            conn.commit()
        return result.rowcount > 0

    def close(self) -> None:
        self.engine.dispose()


# ---------------------------------------------------------------------------
# Row mappers (Data Mapper pattern)
# ---------------------------------------------------------------------------


def _row_to_student(row) -> Student:
    return Student(
        id=row.id,
        full_name=row.full_name,
        email=row.email,
        phone=row.phone,
        birth_date=row.birth_date,
        cpf=row.cpf,
        plan_id=row.plan_id,
        start_date=row.start_date,
        address=Address(**json.loads(row.address)),
        medical_notes=row.medical_notes,
        created_at=row.created_at,
    )


def _row_to_plan(row) -> Plan:
    return Plan(
        id=row.id,
        name=row.name,
        modalities=json.loads(row.modalities),
        price=row.price,
        duration_days=row.duration_days,
        benefits=json.loads(row.benefits),
        active=bool(row.active),
        created_at=row.created_at,
    )


def _row_to_checkin(row) -> Checkin:
    return Checkin(
        id=row.id,
        student_id=row.student_id,
        checked_in_at=row.checked_in_at,
        note=row.note,
        registered_by=row.registered_by,
    )
