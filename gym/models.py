"""
gym/models.py -- Domain dataclasses for gym records.

These are pure data containers with zero logic. Persistence and lookups live in
gym/store.py; HTTP shapes live in api/models.py.

Separation of concerns: these dataclasses are the gym's domain truth, just as
auth/models.py is the authentication layer's. Neither layer imports the other.
"""

from dataclasses import dataclass, field
from typing import Optional


@dataclass
class Address:
    street: str
    number: str
    city: str
    state: str  # two-letter Brazilian state code
    postal_code: str  # CEP, 8 digits
    complement: Optional[str] = None
    district: Optional[str] = None


@dataclass
class Student:
    """A gym member.

    plan_id references a Plan when set. The store does not enforce the link --
    the create route checks it, and deleting a plan leaves students pointing
    at a missing ID.

    id is None before the record is written to the store.
    """

    full_name: str
    email: str
    phone: str
    birth_date: str  # YYYY-MM-DD
    address: Address
    cpf: Optional[str] = None
    plan_id: Optional[int] = None
    start_date: str = ""  # YYYY-MM-DD, store defaults to today
    medical_notes: Optional[str] = None
    id: Optional[int] = None
    created_at: str = ""  # YYYY-MM-DD, set by store on insert


@dataclass
class Plan:
    """A membership plan. duration_days is the billing period length."""

    name: str
    price: float
    duration_days: int
    modalities: list[str] = field(default_factory=list)
    benefits: list[str] = field(default_factory=list)
    active: bool = True
    id: Optional[int] = None
    created_at: str = ""  # YYYY-MM-DD, set by store on insert


@dataclass
class Checkin:
    """One student entry at the gym.

    registered_by is the staff ID taken from the access token of whoever
    recorded the check-in.
    """

    student_id: int
    checked_in_at: str = ""  # ISO 8601, store defaults to now
    note: Optional[str] = None
    registered_by: Optional[int] = None
    id: Optional[int] = None
