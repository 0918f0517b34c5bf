"""
API request and response models for GymDesk REST endpoints.

These Pydantic v2 models define the HTTP transport contract for the API layer.
They are intentionally separate from the dataclasses in auth/models.py and
gym/models.py, which own the internal domain representation. Route handlers
map between the two.

Wire names: JSON keys follow the contract the gym front-end already consumes
(nomeCompleto, userName, senha, ...). Python attributes use English names and
declare the wire key as an alias. populate_by_name=True lets route code build
responses with the Python names; FastAPI serializes response_model output by
alias.
"""

from datetime import date, datetime
from typing import Annotated, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from auth.models import Role, StaffAccount
from gym.models import Address, Checkin, Plan, Student

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

DATE_PATTERN = r"^\d{4}-\d{2}-\d{2}$"
_NAME_PATTERN = r"^[a-zA-ZÀ-ÿ\s]+$"
_EMAIL_PATTERN = r"^[^@\s]+@[^@\s]+\.[^@\s]+$"
_DIGITS_PATTERN = r"^\d+$"

BRAZILIAN_STATES = frozenset(
    {
        "AC", "AL", "AP", "AM", "BA", "CE", "DF", "ES", "GO", "MA", "MT", "MS", "MG", "PA",
        "PB", "PR", "PE", "PI", "RJ", "RN", "RS", "RO", "RR", "SC", "SP", "SE", "TO",
    }
)  # fmt: skip

_IsoDate = Annotated[str, Field(pattern=DATE_PATTERN)]
_PersonName = Annotated[str, Field(min_length=1, max_length=250, pattern=_NAME_PATTERN)]
_Email = Annotated[str, Field(max_length=150, pattern=_EMAIL_PATTERN)]
_Phone = Annotated[str, Field(min_length=1, max_length=11, pattern=_DIGITS_PATTERN)]
_Cpf = Annotated[str, Field(max_length=11, pattern=_DIGITS_PATTERN)]


def _parse_date(value: Optional[str]) -> Optional[str]:
    """Reject strings that match YYYY-MM-DD but are not real dates (e.g. 2024-02-30)."""
    if value is None:
        return None
    date.fromisoformat(value)
    return value


def _not_in_future(value: Optional[str]) -> Optional[str]:
    if value is not None and date.fromisoformat(value) > date.today():
        raise ValueError("Birth date cannot be in the future")
    return value


class _RequestModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class _ResponseModel(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)


# ---------------------------------------------------------------------------
# Errors and health
# ---------------------------------------------------------------------------


class ErrorResponse(_ResponseModel):
    """Error envelope returned on 4xx/5xx responses."""

    message: str


class FieldError(_ResponseModel):
    field: str
    message: str


class ValidationErrorResponse(_ResponseModel):
    """Error envelope for request bodies or params that fail validation."""

    message: str
    errors: list[FieldError] = Field(default_factory=list)


class HealthResponse(_ResponseModel):
    """Response for GET /api/health."""

    status: str = "ok"
    version: str


class MessageResponse(_ResponseModel):
    message: str


class DeletedResponse(_ResponseModel):
    message: str
    id: int


# ---------------------------------------------------------------------------
# Auth
# ---------------------------------------------------------------------------


class LoginRequest(_RequestModel):
    """Request body for POST /api/auth/login."""

    username: str = Field(alias="userName", min_length=1, max_length=100)
    password: str = Field(alias="senha", min_length=1, max_length=255)


class StaffSummary(_ResponseModel):
    """Staff identity returned alongside a fresh token."""

    id: int
    full_name: str = Field(alias="nomeCompleto")
    username: str = Field(alias="userName")
    email: str
    job_title: str = Field(alias="cargo")
    role: Role = Field(alias="perfil")

    @classmethod
    def from_account(cls, account: StaffAccount) -> "StaffSummary":
        return cls(
            id=account.id,
            full_name=account.full_name,
            username=account.username,
            email=account.email,
            job_title=account.job_title,
            role=account.role,
        )


class LoginResponse(_ResponseModel):
    message: str
    token: str
    staff: StaffSummary = Field(alias="funcionario")


class MeResponse(_ResponseModel):
    """Identity asserted by the caller's token and what that role may do."""

    id: int
    username: str = Field(alias="userName")
    role: Role = Field(alias="perfil")
    permissions: list[str] = Field(alias="permissoes")


# ---------------------------------------------------------------------------
# Staff
# ---------------------------------------------------------------------------


class StaffCreate(_RequestModel):
    """Request body for POST /api/funcionarios.

    perfil is required. There is no default role: whoever registers a staff
    member must choose one.
    """

    full_name: _PersonName = Field(alias="nomeCompleto")
    email: _Email
    username: str = Field(alias="userName", min_length=1, max_length=100, pattern=r"^[a-zA-Z0-9_]+$")
    password: str = Field(alias="senha", min_length=6, max_length=20)
    phone: _Phone = Field(alias="telefone")
    birth_date: _IsoDate = Field(alias="dataNascimento")
    cpf: Optional[_Cpf] = None
    job_title: str = Field(alias="cargo", min_length=1, max_length=100, pattern=_NAME_PATTERN)
    role: Role = Field(alias="perfil")
    hire_date: Optional[_IsoDate] = Field(default=None, alias="dataAdmissao")
    cref: Optional[str] = Field(default=None, max_length=50)
    salary: float = Field(alias="salario", ge=0)

    @field_validator("birth_date")
    @classmethod
    def check_birth_date(cls, value: Optional[str]) -> Optional[str]:
        return _not_in_future(_parse_date(value))

    @field_validator("hire_date")
    @classmethod
    def check_hire_date(cls, value: Optional[str]) -> Optional[str]:
        return _parse_date(value)


class StaffUpdate(_RequestModel):
    """Request body for PUT /api/funcionarios/{id}. Every field is optional."""

    full_name: Optional[_PersonName] = Field(default=None, alias="nomeCompleto")
    password: Optional[str] = Field(default=None, alias="senha", min_length=6, max_length=20)
    phone: Optional[_Phone] = Field(default=None, alias="telefone")
    birth_date: Optional[_IsoDate] = Field(default=None, alias="dataNascimento")
    cpf: Optional[_Cpf] = None
    job_title: Optional[str] = Field(default=None, alias="cargo", min_length=1, max_length=100, pattern=_NAME_PATTERN)
    role: Optional[Role] = Field(default=None, alias="perfil")
    hire_date: Optional[_IsoDate] = Field(default=None, alias="dataAdmissao")
    cref: Optional[str] = Field(default=None, max_length=50)
    salary: Optional[float] = Field(default=None, alias="salario", ge=0)

    @field_validator("birth_date")
    @classmethod
    def check_birth_date(cls, value: Optional[str]) -> Optional[str]:
        return _not_in_future(_parse_date(value))

    @field_validator("hire_date")
    @classmethod
    def check_hire_date(cls, value: Optional[str]) -> Optional[str]:
        return _parse_date(value)


class StaffResponse(_ResponseModel):
    """Public staff record. Never includes the password hash, CPF or salary."""

    id: int
    full_name: str = Field(alias="nomeCompleto")
    email: str
    username: str = Field(alias="userName")
    phone: str = Field(alias="telefone")
    birth_date: str = Field(alias="dataNascimento")
    job_title: str = Field(alias="cargo")
    role: Role = Field(alias="perfil")
    hire_date: Optional[str] = Field(alias="dataAdmissao")
    locked: bool = Field(alias="bloqueado")

    @classmethod
    def from_account(cls, account: StaffAccount) -> "StaffResponse":
        return cls(
            id=account.id,
            full_name=account.full_name,
            email=account.email,
            username=account.username,
            phone=account.phone,
            birth_date=account.birth_date,
            job_title=account.job_title,
            role=account.role,
            hire_date=account.hire_date,
            locked=account.locked,
        )


class StaffCreatedResponse(_ResponseModel):
    message: str
    id: int
    full_name: str = Field(alias="nomeCompleto")
    username: str = Field(alias="userName")
    email: str


class StaffUpdatedResponse(_ResponseModel):
    message: str
    staff: StaffResponse = Field(alias="funcionario")


# ---------------------------------------------------------------------------
# Students
# ---------------------------------------------------------------------------


class AddressModel(_RequestModel):
    street: str = Field(alias="rua", min_length=1, max_length=250)
    number: str = Field(alias="numero", min_length=1, max_length=10, pattern=_DIGITS_PATTERN)
    complement: Optional[str] = Field(default=None, alias="complemento", max_length=250)
    district: Optional[str] = Field(default=None, alias="bairro", max_length=100)
    city: str = Field(alias="cidade", min_length=1, max_length=80, pattern=_NAME_PATTERN)
    state: str = Field(alias="estado", min_length=2, max_length=2)
    postal_code: str = Field(alias="cep", pattern=r"^\d{8}$")

    @field_validator("state")
    @classmethod
    def check_state(cls, value: str) -> str:
        if value not in BRAZILIAN_STATES:
            raise ValueError("Invalid state")
        return value

    def to_domain(self) -> Address:
        return Address(
            street=self.street,
            number=self.number,
            complement=self.complement,
            district=self.district,
            city=self.city,
            state=self.state,
            postal_code=self.postal_code,
        )


class AddressPatch(_RequestModel):
    """Partial address for PUT /api/alunos/{id}; merged over the stored address."""

    street: Optional[str] = Field(default=None, alias="rua", min_length=1, max_length=250)
    number: Optional[str] = Field(default=None, alias="numero", min_length=1, max_length=10, pattern=_DIGITS_PATTERN)
    complement: Optional[str] = Field(default=None, alias="complemento", max_length=250)
    district: Optional[str] = Field(default=None, alias="bairro", max_length=100)
    city: Optional[str] = Field(default=None, alias="cidade", min_length=1, max_length=80, pattern=_NAME_PATTERN)
    state: Optional[str] = Field(default=None, alias="estado", min_length=2, max_length=2)
    postal_code: Optional[str] = Field(default=None, alias="cep", pattern=r"^\d{8}$")

    @field_validator("state")
    @classmethod
    def check_state(cls, value: Optional[str]) -> Optional[str]:
        if value is not None and value not in BRAZILIAN_STATES:
            raise ValueError("Invalid state")
        return value


class StudentCreate(_RequestModel):
    """Request body for POST /api/alunos."""

    full_name: _PersonName = Field(alias="nomeCompleto")
    email: _Email
    phone: _Phone = Field(alias="telefone")
    birth_date: _IsoDate = Field(alias="dataNascimento")
    cpf: Optional[_Cpf] = None
    plan_id: Optional[int] = Field(default=None, alias="planoId", ge=1)
    start_date: Optional[_IsoDate] = Field(default=None, alias="dataInicio")
    address: AddressModel = Field(alias="endereco")
    medical_notes: Optional[str] = Field(default=None, alias="informacoesMedicas", max_length=2000)

    @field_validator("birth_date")
    @classmethod
    def check_birth_date(cls, value: Optional[str]) -> Optional[str]:
        return _not_in_future(_parse_date(value))

    @field_validator("start_date")
    @classmethod
    def check_start_date(cls, value: Optional[str]) -> Optional[str]:
        return _parse_date(value)


class StudentUpdate(_RequestModel):
    """Request body for PUT /api/alunos/{id}. Every field is optional."""

    full_name: Optional[_PersonName] = Field(default=None, alias="nomeCompleto")
    phone: Optional[_Phone] = Field(default=None, alias="telefone")
    birth_date: Optional[_IsoDate] = Field(default=None, alias="dataNascimento")
    cpf: Optional[_Cpf] = None
    plan_id: Optional[int] = Field(default=None, alias="planoId", ge=1)
    start_date: Optional[_IsoDate] = Field(default=None, alias="dataInicio")
    address: Optional[AddressPatch] = Field(default=None, alias="endereco")
    medical_notes: Optional[str] = Field(default=None, alias="informacoesMedicas", max_length=2000)

    @field_validator("birth_date")
    @classmethod
    def check_birth_date(cls, value: Optional[str]) -> Optional[str]:
        return _not_in_future(_parse_date(value))

    @field_validator("start_date")
    @classmethod
    def check_start_date(cls, value: Optional[str]) -> Optional[str]:
        return _parse_date(value)


class StudentResponse(_ResponseModel):
    """Student record without CPF, address or medical notes."""

    id: int
    full_name: str = Field(alias="nomeCompleto")
    email: str
    phone: str = Field(alias="telefone")
    birth_date: str = Field(alias="dataNascimento")
    plan_id: Optional[int] = Field(alias="planoId")
    start_date: str = Field(alias="dataInicio")

    @classmethod
    def from_student(cls, student: Student) -> "StudentResponse":
        return cls(
            id=student.id,
            full_name=student.full_name,
            email=student.email,
            phone=student.phone,
            birth_date=student.birth_date,
            plan_id=student.plan_id,
            start_date=student.start_date,
        )


class StudentCreatedResponse(_ResponseModel):
    message: str
    id: int
    full_name: str = Field(alias="nomeCompleto")
    email: str


class StudentUpdatedResponse(_ResponseModel):
    message: str
    student: StudentResponse = Field(alias="aluno")


# ---------------------------------------------------------------------------
# Plans
# ---------------------------------------------------------------------------


class PlanCreate(_RequestModel):
    """Request body for POST /api/planos."""

    name: str = Field(alias="nome", min_length=3, max_length=100)
    modalities: list[str] = Field(alias="modalidades", min_length=1)
    price: float = Field(alias="valor", ge=0)
    duration_days: int = Field(alias="duracao", ge=1)
    benefits: list[str] = Field(alias="beneficios", min_length=1)
    active: bool = Field(default=True, alias="ativo")


class PlanUpdate(_RequestModel):
    """Request body for PUT /api/planos/{id}. At least one field must be set."""

    name: Optional[str] = Field(default=None, alias="nome", min_length=3, max_length=100)
    modalities: Optional[list[str]] = Field(default=None, alias="modalidades", min_length=1)
    price: Optional[float] = Field(default=None, alias="valor", ge=0)
    duration_days: Optional[int] = Field(default=None, alias="duracao", ge=1)
    benefits: Optional[list[str]] = Field(default=None, alias="beneficios", min_length=1)
    active: Optional[bool] = Field(default=None, alias="ativo")


class PlanResponse(_ResponseModel):
    id: int
    name: str = Field(alias="nome")
    modalities: list[str] = Field(alias="modalidades")
    price: float = Field(alias="valor")
    duration_days: int = Field(alias="duracao")
    benefits: list[str] = Field(alias="beneficios")
    active: bool = Field(alias="ativo")
    created_at: str = Field(alias="dataCadastro")

    @classmethod
    def from_plan(cls, plan: Plan) -> "PlanResponse":
        return cls(
            id=plan.id,
            name=plan.name,
            modalities=plan.modalities,
            price=plan.price,
            duration_days=plan.duration_days,
            benefits=plan.benefits,
            active=plan.active,
            created_at=plan.created_at,
        )


class PlanListResponse(_ResponseModel):
    plans: list[PlanResponse] = Field(alias="planos")


class PlanDetailResponse(_ResponseModel):
    plan: PlanResponse = Field(alias="plano")


# ---------------------------------------------------------------------------
# Check-ins
# ---------------------------------------------------------------------------


class CheckinCreate(_RequestModel):
    """Request body for POST /api/checkins. registradoPor is taken from the token."""

    student_id: int = Field(alias="alunoId", ge=1)
    checked_in_at: Optional[datetime] = Field(default=None, alias="dataHora")
    note: Optional[str] = Field(default=None, alias="observacao", max_length=500)


class CheckinResponse(_ResponseModel):
    id: int
    student_id: int = Field(alias="alunoId")
    checked_in_at: str = Field(alias="dataHora")
    note: Optional[str] = Field(alias="observacao")
    registered_by: Optional[int] = Field(alias="registradoPor")

    @classmethod
    def from_checkin(cls, checkin: Checkin) -> "CheckinResponse":
        return cls(
            id=checkin.id,
            student_id=checkin.student_id,
            checked_in_at=checkin.checked_in_at,
            note=checkin.note,
            registered_by=checkin.registered_by,
        )


class CheckinListResponse(_ResponseModel):
    checkins: list[CheckinResponse]


class CheckinDetailResponse(_ResponseModel):
    checkin: CheckinResponse


class StudentCheckinsResponse(_ResponseModel):
    student: StudentResponse = Field(alias="aluno")
    checkins: list[CheckinResponse]
