from __future__ import annotations

from datetime import date, datetime
from typing import List, Optional

from dateutil.relativedelta import relativedelta
from pydantic import BaseModel, EmailStr, Field, field_validator, model_validator

from models.enums import AccountRole, ApplicationStatus, Decision, YesNo
from models.models import TENANCY_TERM_FIELDS

MINIMUM_TENANT_AGE = 18

# (yes/no question, follow-up that must be filled in when the answer is yes)
CONDITIONAL_ANSWERS = (
    ("if_evicted", "evicted_reason", "Evicted reason not given"),
    ("if_convicted", "convicted_reason", "Conviction information not given"),
    ("if_vehicle", "vehicle_reg", "Vehicle registration not given"),
    ("have_children", "children", "Children information not given"),
    ("refused_rent", "refused_rent_reason", "Reason for refusing rent not given"),
    ("unstable_income", "income_reason", "Reasons for unstable income not given"),
)


def is_adult(date_of_birth: date, today: Optional[date] = None) -> bool:
    today = today or date.today()
    return date_of_birth + relativedelta(years=MINIMUM_TENANT_AGE) <= today


class LoginInput(BaseModel):
    email: EmailStr
    password: str = Field(max_length=72)


class LandlordCreate(BaseModel):
    email: EmailStr
    password: str = Field(min_length=8, max_length=72)
    confirm_password: str

    @model_validator(mode="after")
    def passwords_match(self):
        if self.password != self.confirm_password:
            raise ValueError("Passwords do not match")
        return self


class TenantApplicationCreate(BaseModel):
    full_name: str = Field(min_length=1, max_length=200)
    date_of_birth: date
    # ASCII only: it becomes part of the bcrypt-hashed tenant password
    passport_number: str = Field(min_length=1, max_length=32, pattern=r"^[A-Za-z0-9][A-Za-z0-9 ]*$")
    phone_number: str = Field(min_length=1, max_length=32)
    email: EmailStr
    occupation: str = Field(min_length=1)
    employer: str = ""
    employer_number: str = ""
    emergency_contact_name: str = Field(min_length=1)
    emergency_contact_number: str = Field(min_length=1)
    emergency_contact_address: str = Field(min_length=1)
    if_evicted: YesNo
    evicted_reason: str = ""
    if_convicted: YesNo
    convicted_reason: str = ""
    smoke: YesNo
    pets: YesNo
    if_vehicle: YesNo
    vehicle_reg: str = ""
    have_children: YesNo
    children: str = ""
    refused_rent: YesNo
    refused_rent_reason: str = ""
    unstable_income: YesNo
    income_reason: str = ""

    @field_validator("date_of_birth")
    @classmethod
    def validate_age(cls, value: date):
        if not is_adult(value):
            raise ValueError(f"Applicant must be {MINIMUM_TENANT_AGE} years or older")
        return value

    @model_validator(mode="after")
    def validate_follow_ups(self):
        for question, follow_up, message in CONDITIONAL_ANSWERS:
            if getattr(self, question) == YesNo.YES and not getattr(self, follow_up).strip():
                raise ValueError(message)
        return self

    def sealed_values(self) -> dict[str, str]:
        values = self.model_dump(mode="json")
        return {name: str(value) for name, value in values.items()}


class TenancyTerms(BaseModel):
    room_type: Optional[str] = None
    move_in_date: Optional[str] = None
    rent_due: Optional[str] = None
    monthly_rent: Optional[str] = None
    currency: Optional[str] = None

    def missing_fields(self) -> List[str]:
        return [
            name
            for name in TENANCY_TERM_FIELDS
            if not (getattr(self, name) or "").strip()
        ]


class ApplicationDecisionInput(BaseModel):
    application_id: int
    decision: Decision
    terms: Optional[TenancyTerms] = None


class PasswordUpdateInput(BaseModel):
    old_password: str = Field(max_length=72)
    new_password: str = Field(max_length=72)
    confirm_password: str = Field(max_length=72)


class MessageInput(BaseModel):
    body: str = Field(min_length=1, max_length=5000)


class ApplicationOut(BaseModel):
    id: int
    status: ApplicationStatus
    created_at: Optional[datetime] = None
    details: dict[str, str]


class TenantAccountOut(BaseModel):
    id: int
    email: str
    terms: TenancyTerms


class MessageOut(BaseModel):
    id: int
    sender_role: AccountRole
    body: str
    created_at: Optional[datetime] = None
