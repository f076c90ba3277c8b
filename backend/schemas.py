from datetime import date, datetime, timedelta
from typing import Literal, Optional

from pydantic import BaseModel, Field, field_validator, model_validator


ApplicationStatus = Literal[
    "Connected", "Need Referral", "Applied", "Interview", "Offer", "Rejected", "No Response"
]
ContactStatus = Literal["Active", "Inactive", "Follow-up"]

SECOND_CONTACT_DELAY = timedelta(days=7)


def suggested_second_contact(first_contact: Optional[date]) -> Optional[date]:
    if first_contact is None:
        return None
    return first_contact + SECOND_CONTACT_DELAY


# ---------- Applications ----------

class ApplicationCreate(BaseModel):
    company: str = Field(min_length=1)
    link: str = ""
    active_apps: bool = True
    status: ApplicationStatus = "Applied"
    username: str = ""
    password: str = ""


class ApplicationUpdate(BaseModel):
    company: Optional[str] = Field(default=None, min_length=1)
    link: Optional[str] = None
    active_apps: Optional[bool] = None
    status: Optional[ApplicationStatus] = None
    username: Optional[str] = None
    password: Optional[str] = None

    @field_validator("company", "link", "active_apps", "status", "username", "password", mode="before")
    @classmethod
    def reject_null(cls, value):
        if value is None:
            raise ValueError("may not be null")
        return value


class ApplicationResponse(BaseModel):
    id: str
    company: str
    link: Optional[str]
    active_apps: bool
    status: str
    username: Optional[str]
    password: Optional[str]
    created_at: datetime

    model_config = {"from_attributes": True}


# ---------- Network contacts ----------

class ContactCreate(BaseModel):
    name: str = Field(min_length=1)
    status: ContactStatus = "Active"
    company: str = ""
    role: str = ""
    linkedin_profile: str = ""
    location: str = ""
    date_of_first_contact: Optional[date] = None
    second_contact: Optional[date] = None
    notes: str = ""
    action_items: str = ""

    @model_validator(mode="after")
    def default_second_contact(self):
        if self.second_contact is None:
            self.second_contact = suggested_second_contact(self.date_of_first_contact)
        return self


class ContactUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1)
    status: Optional[ContactStatus] = None
    company: Optional[str] = None
    role: Optional[str] = None
    linkedin_profile: Optional[str] = None
    location: Optional[str] = None
    date_of_first_contact: Optional[date] = None
    second_contact: Optional[date] = None
    notes: Optional[str] = None
    action_items: Optional[str] = None

    # Only the two dates may be cleared.
    @field_validator(
        "name", "status", "company", "role", "linkedin_profile", "location", "notes", "action_items",
        mode="before",
    )
    @classmethod
    def reject_null(cls, value):
        if value is None:
            raise ValueError("may not be null")
        return value


class ContactResponse(BaseModel):
    id: str
    name: str
    status: str
    company: Optional[str]
    role: Optional[str]
    linkedin_profile: Optional[str]
    location: Optional[str]
    date_of_first_contact: Optional[date]
    second_contact: Optional[date]
    notes: Optional[str]
    action_items: Optional[str]
    created_at: datetime

    model_config = {"from_attributes": True}


class ApplicationDetailResponse(ApplicationResponse):
    related_contacts: list[ContactResponse] = []


# ---------- Auth ----------

class Credentials(BaseModel):
    email: str
    password: str


class UserResponse(BaseModel):
    id: str
    email: str


class SessionResponse(BaseModel):
    token: str
    user: UserResponse


# ---------- Messages ----------

class MessageRequest(BaseModel):
    name: str = ""
    company: str = ""
    role: str = ""


class MessageResponse(BaseModel):
    linkedin_connect: str
    follow_up: str
    recruiter_email: str

