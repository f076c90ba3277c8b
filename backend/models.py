import uuid
from datetime import datetime, timezone

from sqlalchemy import Boolean, Column, Date, DateTime, ForeignKey, String, Text
from database import Base


APPLICATION_STATUSES = (
    "Connected",
    "Need Referral",
    "Applied",
    "Interview",
    "Offer",
    "Rejected",
    "No Response",
)
CONTACT_STATUSES = ("Active", "Inactive", "Follow-up")


def _new_id():
    return str(uuid.uuid4())


def _utcnow():
    return datetime.now(timezone.utc)


class User(Base):
    __tablename__ = "users"

    id = Column(String(36), primary_key=True, default=_new_id)
    email = Column(String, unique=True, index=True, nullable=False)
    password_hash = Column(String, nullable=False)
    created_at = Column(DateTime, default=_utcnow)


class AuthSession(Base):
    __tablename__ = "auth_sessions"

    token = Column(String(64), primary_key=True)
    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), index=True, nullable=False)
    created_at = Column(DateTime, default=_utcnow)


class Application(Base):
    __tablename__ = "applications"

    id = Column(String(36), primary_key=True, default=_new_id)
    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), index=True, nullable=False)
    company = Column(String, nullable=False)
    link = Column(String, default="")
    active_apps = Column(Boolean, default=True, nullable=False)
    status = Column(String, default="Applied", nullable=False)
    username = Column(String, default="")
    # Stored as entered; no encryption at this layer.
    password = Column(String, default="")
    created_at = Column(DateTime, default=_utcnow, index=True)


class NetworkContact(Base):
    __tablename__ = "network_contacts"

    id = Column(String(36), primary_key=True, default=_new_id)
    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), index=True, nullable=False)
    name = Column(String, nullable=False)
    status = Column(String, default="Active", nullable=False)
    company = Column(String, default="")
    role = Column(String, default="")
    linkedin_profile = Column(String, default="")
    location = Column(String, default="")
    date_of_first_contact = Column(Date, nullable=True)
    second_contact = Column(Date, nullable=True)
    notes = Column(Text, default="")
    action_items = Column(Text, default="")
    created_at = Column(DateTime, default=_utcnow, index=True)


TABLES = {
    "applications": Application,
    "network_contacts": NetworkContact,
}
