from sqlalchemy import (
    Column, Integer, String, Float, DateTime, Boolean, Text, ForeignKey, JSON,
    CheckConstraint, Enum as SQLEnum
)
from sqlalchemy.orm import relationship
from datetime import datetime
import enum

# Import Base from database module to ensure consistency
from database import Base


class UserRole(str, enum.Enum):
    USER = "user"
    REGIONAL_OFFICER = "regional_officer"
    MASTER_ADMIN = "master_admin"


class TransactionKind(str, enum.Enum):
    DEPOSIT = "deposit"
    WITHDRAWAL = "withdrawal"
    COLLECTION = "collection"


class ApplicationStatus(str, enum.Enum):
    PENDING = "pending"
    REVIEWED = "reviewed"
    FORWARDED = "forwarded"
    REPLIED = "replied"
    APPROVED = "approved"
    REJECTED = "rejected"


class ActivityStatus(str, enum.Enum):
    ACTIVE = "active"
    PAUSED = "paused"


class ResourceType(str, enum.Enum):
    DOCUMENT = "document"
    TOOL = "tool"
    FUND = "fund"


def _enum_values(enum_cls):
    return [member.value for member in enum_cls]


class Branch(Base):
    __tablename__ = "branches"

    id = Column(Integer, primary_key=True, index=True)
    region = Column(String(100), nullable=False, index=True)
    location = Column(String(200), nullable=False)
    is_head_office = Column(Boolean, default=False, nullable=False)
    officer_name = Column(String(100), nullable=True)
    officer_bio = Column(Text, nullable=True)
    officer_photo = Column(String(255), nullable=True)  # Attachment path
    officer_photos = Column(JSON, default=list)  # List of attachment paths
    created_at = Column(DateTime, default=datetime.utcnow)

    activities = relationship("Activity", back_populates="branch", order_by="Activity.created_at.desc()")
    resources = relationship("Resource", back_populates="branch")

    def __repr__(self):
        return f"<Branch {self.region} ({self.location})>"


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String(100), unique=True, index=True, nullable=False)
    hashed_password = Column(String(255), nullable=False)
    name = Column(String(100), nullable=False)
    role = Column(SQLEnum(UserRole, values_callable=_enum_values), default=UserRole.USER, nullable=False)
    branch_id = Column(Integer, ForeignKey("branches.id", ondelete="SET NULL"), nullable=True, index=True)
    phone = Column(String(30), nullable=True)
    bio = Column(Text, nullable=True)
    photo = Column(String(255), nullable=True)  # Attachment path
    created_at = Column(DateTime, default=datetime.utcnow)

    account = relationship("Account", back_populates="user", uselist=False, cascade="all, delete-orphan")

    def __repr__(self):
        return f"<User {self.email} ({self.role})>"


class Account(Base):
    __tablename__ = "accounts"
    __table_args__ = (
        CheckConstraint("balance >= 0", name="ck_account_balance_non_negative"),
    )

    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), primary_key=True)
    balance = Column(Float, default=0.0, nullable=False)
    auto_pay = Column(Boolean, default=False, nullable=False)

    user = relationship("User", back_populates="account")


class Transaction(Base):
    """Append-only ledger entry. One row per balance mutation."""
    __tablename__ = "transactions"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True)
    kind = Column(SQLEnum(TransactionKind, values_callable=_enum_values), nullable=False)
    amount = Column(Float, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, index=True)


class AuditLog(Base):
    __tablename__ = "audit_logs"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True)
    action = Column(String(50), nullable=False)
    details = Column(Text, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, index=True)

    user = relationship("User")


class PasswordReset(Base):
    __tablename__ = "password_resets"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String(100), nullable=False, index=True)
    reset_token = Column(String(255), unique=True, nullable=False, index=True)
    expires_at = Column(DateTime, nullable=False)
    is_used = Column(Boolean, default=False, nullable=False)


class DonationApplication(Base):
    """Vulnerable-person aid request reviewed by a regional officer."""
    __tablename__ = "donation_applications"

    id = Column(Integer, primary_key=True, index=True)
    branch_id = Column(Integer, ForeignKey("branches.id", ondelete="SET NULL"), nullable=True, index=True)
    vulnerable_name = Column(String(100), nullable=False)
    images = Column(JSON, default=list)  # Evidence image paths
    active_phone = Column(String(30), nullable=True)
    alt_phone = Column(String(30), nullable=True)
    guardian_name = Column(String(100), nullable=True)
    country = Column(String(100), nullable=True)
    district = Column(String(100), nullable=True)
    county = Column(String(100), nullable=True)
    sub_county = Column(String(100), nullable=True)
    parish = Column(String(100), nullable=True)
    village = Column(String(100), nullable=True)
    chairperson_name = Column(String(100), nullable=True)
    chairperson_phone = Column(String(30), nullable=True)
    recommendation_letter = Column(String(255), nullable=False)
    status = Column(
        SQLEnum(ApplicationStatus, values_callable=_enum_values),
        default=ApplicationStatus.PENDING,
        nullable=False,
        index=True
    )
    officer_reply = Column(Text, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, index=True)


class RegionalRequest(Base):
    __tablename__ = "regional_requests"

    id = Column(Integer, primary_key=True, index=True)
    branch_id = Column(Integer, ForeignKey("branches.id", ondelete="SET NULL"), nullable=True, index=True)
    requester_name = Column(String(100), nullable=False)
    contact = Column(String(100), nullable=False)
    need_description = Column(Text, nullable=False)
    status = Column(String(30), default="pending", nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, index=True)


class Activity(Base):
    __tablename__ = "activities"

    id = Column(Integer, primary_key=True, index=True)
    branch_id = Column(Integer, ForeignKey("branches.id", ondelete="CASCADE"), nullable=True, index=True)
    title = Column(String(200), nullable=False)
    description = Column(Text, nullable=True)
    status = Column(SQLEnum(ActivityStatus, values_callable=_enum_values), default=ActivityStatus.ACTIVE, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, index=True)

    branch = relationship("Branch", back_populates="activities")


class Resource(Base):
    __tablename__ = "resources"

    id = Column(Integer, primary_key=True, index=True)
    branch_id = Column(Integer, ForeignKey("branches.id", ondelete="CASCADE"), nullable=True, index=True)
    name = Column(String(200), nullable=False)
    type = Column(SQLEnum(ResourceType, values_callable=_enum_values), default=ResourceType.DOCUMENT, nullable=False)
    description = Column(Text, nullable=True)
    url = Column(String(500), nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)

    branch = relationship("Branch", back_populates="resources")


class Donation(Base):
    __tablename__ = "donations"

    id = Column(Integer, primary_key=True, index=True)
    donor_name = Column(String(100), nullable=False)
    amount = Column(Float, nullable=False)
    message = Column(Text, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, index=True)


class RegionalDonation(Base):
    __tablename__ = "regional_donations"

    id = Column(Integer, primary_key=True, index=True)
    branch_id = Column(Integer, ForeignKey("branches.id", ondelete="SET NULL"), nullable=True, index=True)
    donor_name = Column(String(100), nullable=False)
    amount = Column(Float, nullable=False)
    message = Column(Text, nullable=True)
    is_anonymous = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, index=True)


class ImpactStory(Base):
    __tablename__ = "impact_stories"

    id = Column(Integer, primary_key=True, index=True)
    branch_id = Column(Integer, ForeignKey("branches.id", ondelete="SET NULL"), nullable=True, index=True)
    title = Column(String(200), nullable=False)
    story = Column(Text, nullable=False)
    beneficiary_name = Column(String(100), nullable=True)
    image = Column(String(255), nullable=True)  # Attachment path
    is_approved = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, index=True)
