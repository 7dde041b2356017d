"""
Clinic CRM Database Models
SQLAlchemy ORM models for patients, collaborators, cities and their activity
"""

import enum
import uuid

from sqlalchemy import (
    Column, Integer, String, DateTime, Boolean, Text, Numeric,
    ForeignKey, Enum as SQLEnum
)
from sqlalchemy.orm import relationship

from app.core.dates import utcnow
from database import Base


def generate_uuid() -> str:
    return str(uuid.uuid4())


def enum_column(enum_cls, **kwargs):
    """
    Store a str enum by its value in a plain VARCHAR column.
    Accepts both members and raw string values on assignment.
    """
    return SQLEnum(
        enum_cls,
        values_callable=lambda members: [member.value for member in members],
        native_enum=False,
        length=32,
        **kwargs,
    )


# ==================== Enums ====================

class UserRole(str, enum.Enum):
    """User role enumeration"""
    ADMIN = "admin"
    COLLABORATOR = "collaborator"


class Classification(str, enum.Enum):
    """
    Patient priority tier, ordered bronze < silver < gold < diamond.
    Comparison operators follow the tier order, not the alphabet.
    """
    BRONZE = "bronze"
    SILVER = "silver"
    GOLD = "gold"
    DIAMOND = "diamond"

    @property
    def rank(self) -> int:
        return _CLASSIFICATION_ORDER.index(self)

    def __lt__(self, other):
        if not isinstance(other, Classification):
            return NotImplemented
        return self.rank < other.rank

    def __le__(self, other):
        if not isinstance(other, Classification):
            return NotImplemented
        return self.rank <= other.rank

    def __gt__(self, other):
        if not isinstance(other, Classification):
            return NotImplemented
        return self.rank > other.rank

    def __ge__(self, other):
        if not isinstance(other, Classification):
            return NotImplemented
        return self.rank >= other.rank


_CLASSIFICATION_ORDER = [
    Classification.BRONZE,
    Classification.SILVER,
    Classification.GOLD,
    Classification.DIAMOND,
]


def compare_classification(left, right) -> int:
    """
    Three-way comparison of two classifications (members or raw values).
    Missing values sort below bronze.

    Returns:
        -1, 0 or 1
    """
    left_rank = Classification(left).rank if left else -1
    right_rank = Classification(right).rank if right else -1
    return (left_rank > right_rank) - (left_rank < right_rank)


class PatientStatus(str, enum.Enum):
    """Patient lifecycle status"""
    ACTIVE = "active"
    FOLLOWUP = "followup"
    RETURN = "return"
    INACTIVE = "inactive"
    DEACTIVATED = "deactivated"


class FollowupStatus(str, enum.Enum):
    """Outcome tag recorded after a consultation"""
    NO_CLOSURE = "no_closure"
    MISSED = "missed"
    ACTIVE = "active"
    PROCEDURE_CLOSED = "procedure_closed"

    @classmethod
    def normalize(cls, value):
        """Map the legacy ``closed_procedure`` spelling to ``procedure_closed``"""
        if value is None:
            return None
        if isinstance(value, cls):
            return value
        if value == "closed_procedure":
            return cls.PROCEDURE_CLOSED
        return cls(value)


class CompletionType(str, enum.Enum):
    """How a consultation event was resolved"""
    PROCEDURE_CLOSED = "procedure_closed"
    NO_CLOSURE = "no_closure"
    MISSED = "missed"

    @classmethod
    def normalize(cls, value):
        if value is None:
            return None
        if isinstance(value, cls):
            return value
        if value == "closed_procedure":
            return cls.PROCEDURE_CLOSED
        return cls(value)


class NoteType(str, enum.Enum):
    """Patient timeline entry type"""
    NOTE = "note"
    PROCEDURE = "procedure"
    APPOINTMENT = "appointment"
    MISSED = "missed"
    PAYMENT = "payment"
    STATUS = "status"
    FILE = "file"


class ProcedureStatus(str, enum.Enum):
    ACTIVE = "active"
    CLOSED = "closed"
    EXPIRED = "expired"


class EventType(str, enum.Enum):
    CONSULTATION = "consultation"
    PROCEDURE = "procedure"
    FOLLOWUP = "followup"
    RETURN = "return"
    TASK = "task"


class EventStatus(str, enum.Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class TaskPriority(str, enum.Enum):
    """Admin task priority enumeration"""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    URGENT = "urgent"


class TaskStatus(str, enum.Enum):
    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class TaskCategory(str, enum.Enum):
    GENERAL = "general"
    PATIENT_FOLLOW_UP = "patient_follow_up"
    SALES = "sales"
    ADMINISTRATIVE = "administrative"


class RecurringPattern(str, enum.Enum):
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"


# ==================== Base Model ====================

class BaseModel(Base):
    """Base model with common fields"""
    __abstract__ = True

    id = Column(String(36), primary_key=True, default=generate_uuid, index=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)


class TimestampedModel(BaseModel):
    """Base model for rows that track their last update"""
    __abstract__ = True

    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)


# ==================== Models ====================

class User(BaseModel):
    """
    User Model
    Represents system users (admin or collaborator)
    """
    __tablename__ = "users"

    username = Column(String(50), unique=True, nullable=False, index=True)
    hashed_password = Column(String(255), nullable=False)
    name = Column(String(200), nullable=False)
    role = Column(enum_column(UserRole), nullable=False, default=UserRole.COLLABORATOR)

    def __repr__(self):
        return f"<User(id={self.id}, username='{self.username}', role='{self.role}')>"


class City(BaseModel):
    """
    City Model
    Collaborators are based in a city; goals are decimal strings
    """
    __tablename__ = "cities"

    name = Column(String(120), unique=True, nullable=False, index=True)
    state = Column(String(2), nullable=False)
    description = Column(Text, nullable=True)
    monthly_goal = Column(String(32), nullable=True)
    quarterly_goal = Column(String(32), nullable=True)
    yearly_goal = Column(String(32), nullable=True)

    def __repr__(self):
        return f"<City(id={self.id}, name='{self.name}', state='{self.state}')>"


class Collaborator(TimestampedModel):
    """
    Collaborator Model
    Staff user owning a portfolio of patients, measured against goals
    """
    __tablename__ = "collaborators"

    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), unique=True, nullable=False, index=True)
    city_id = Column(String(36), ForeignKey("cities.id"), nullable=False, index=True)
    revenue_goal = Column(Numeric(10, 2), nullable=False, default=0)
    consultation_goal = Column(Integer, nullable=False, default=0)
    is_active = Column(Boolean, default=True, nullable=False)

    # Relationships
    user = relationship("User", lazy="selectin")
    city = relationship("City", lazy="selectin")

    def __repr__(self):
        return f"<Collaborator(id={self.id}, user_id={self.user_id}, city_id={self.city_id})>"


class Patient(TimestampedModel):
    """
    Patient Model
    A patient is owned by at most one collaborator at a time
    """
    __tablename__ = "patients"

    # Basic Information
    name = Column(String(200), nullable=False, index=True)
    phone = Column(String(20), nullable=True)
    email = Column(String(100), nullable=True)
    photo = Column(String(255), nullable=True)

    # Ownership
    city_id = Column(String(36), ForeignKey("cities.id"), nullable=True, index=True)
    collaborator_id = Column(String(36), ForeignKey("collaborators.id"), nullable=True, index=True)

    # CRM Information
    classification = Column(enum_column(Classification), nullable=False, default=Classification.BRONZE)
    current_status = Column(Text, nullable=True)
    next_steps = Column(Text, nullable=True)
    last_consultation_date = Column(DateTime(timezone=True), nullable=True)
    is_registration_complete = Column(Boolean, default=False, nullable=False)
    clinic_goals = Column(Text, nullable=True)
    main_concerns = Column(Text, nullable=True)
    important_notes = Column(Text, nullable=True)

    # Lifecycle
    status = Column(enum_column(PatientStatus), nullable=False, default=PatientStatus.ACTIVE, index=True)
    followup_status = Column(enum_column(FollowupStatus), nullable=True, index=True)
    deactivated_at = Column(DateTime(timezone=True), nullable=True)
    deactivation_reason = Column(Text, nullable=True)
    deactivated_by = Column(String(36), ForeignKey("collaborators.id"), nullable=True)

    # Relationships
    city = relationship("City", lazy="selectin")
    collaborator = relationship("Collaborator", foreign_keys=[collaborator_id], lazy="selectin")

    def __repr__(self):
        return f"<Patient(id={self.id}, name='{self.name}', status='{self.status}')>"


# Import other models to register them with Base.metadata
from app.models.procedure import ProcedureTemplate, Procedure  # noqa: E402,F401
from app.models.event import Event  # noqa: E402,F401
from app.models.patient_note import PatientNote  # noqa: E402,F401
from app.models.task import AdminTask  # noqa: E402,F401
from app.models.performance import PerformanceMetric, PatientProgress  # noqa: E402,F401
from app.models.activity import ActivityLog  # noqa: E402,F401
