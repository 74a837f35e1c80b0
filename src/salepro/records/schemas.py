"""Pydantic schemas for the CRUD-only CRM entities.

Defines create/update/read payloads for:
- Leads (prospects not yet worked into contacts)
- Contacts and Clients (clients are contacts converted by a won deal)
- Activities (calls, meetings, emails, tasks logged against contacts/deals)
- Sales teams

Deals live in pipeline.schemas and invoices in invoices.schemas.
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, Field


# ── Enums ───────────────────────────────────────────────────────────────────


class LeadStatus(str, Enum):
    NEW = "New"
    CONTACTED = "Contacted"
    QUALIFIED = "Qualified"
    UNQUALIFIED = "Unqualified"


class LeadSource(str, Enum):
    WEBSITE = "Website"
    LINKEDIN = "LinkedIn"
    REFERRAL = "Referral"
    TRADE_SHOW = "Trade Show"
    COLD_CALL = "Cold Call"
    EMAIL = "Email"


class RelationshipLevel(str, Enum):
    """How a contact relates to the buying decision."""

    DECISION_MAKER = "Decision Maker"
    INFLUENCER = "Influencer"
    CHAMPION = "Champion"
    TECHNICAL_EVALUATOR = "Technical Evaluator"
    CONTACT = "Contact"


class ActivityType(str, Enum):
    CALL = "Call"
    MEETING = "Meeting"
    EMAIL = "Email"
    TASK = "Task"


class ActivityOutcome(str, Enum):
    PENDING = "Pending"
    POSITIVE = "Positive"
    NEUTRAL = "Neutral"
    NEGATIVE = "Negative"
    COMPLETED = "Completed"


# ── Leads ───────────────────────────────────────────────────────────────────


class LeadCreate(BaseModel):
    """Schema for creating a new lead."""

    first_name: str
    last_name: str
    email: str | None = None
    phone: str | None = None
    company: str | None = None
    job_title: str | None = None
    industry: str | None = None
    lead_source: LeadSource | None = None
    status: LeadStatus = LeadStatus.NEW


class LeadUpdate(BaseModel):
    """Schema for updating a lead (all fields optional)."""

    first_name: str | None = None
    last_name: str | None = None
    email: str | None = None
    phone: str | None = None
    company: str | None = None
    job_title: str | None = None
    industry: str | None = None
    lead_source: LeadSource | None = None
    status: LeadStatus | None = None
    last_contact: datetime | None = None


class Lead(LeadCreate):
    """Schema for reading a lead."""

    id: int
    status: LeadStatus = LeadStatus.NEW
    created_date: datetime | None = None
    last_contact: datetime | None = None


# ── Contacts & Clients ──────────────────────────────────────────────────────


class ContactCreate(BaseModel):
    """Schema for creating a new contact."""

    first_name: str
    last_name: str
    email: str | None = None
    phone: str | None = None
    company: str | None = None
    job_title: str | None = None
    account_id: str | None = None
    relationship_level: RelationshipLevel = RelationshipLevel.CONTACT
    notes: str = ""


class ContactUpdate(BaseModel):
    """Schema for updating a contact (all fields optional)."""

    first_name: str | None = None
    last_name: str | None = None
    email: str | None = None
    phone: str | None = None
    company: str | None = None
    job_title: str | None = None
    account_id: str | None = None
    relationship_level: RelationshipLevel | None = None
    notes: str | None = None


class Contact(ContactCreate):
    """Schema for reading a contact."""

    id: int
    last_interaction: datetime | None = None

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()


class ClientCreate(ContactCreate):
    """Schema for creating a client (converted customer)."""

    relationship_level: RelationshipLevel = RelationshipLevel.CHAMPION


class ClientUpdate(ContactUpdate):
    """Schema for updating a client (all fields optional)."""


class Client(ClientCreate):
    """Schema for reading a client."""

    id: int
    last_interaction: datetime | None = None


# ── Activities ──────────────────────────────────────────────────────────────


class ActivityCreate(BaseModel):
    """Schema for logging an activity."""

    type: ActivityType = ActivityType.CALL
    contact_id: int | None = None
    deal_id: int | None = None
    subject: str
    description: str = ""
    date: datetime | None = None
    duration: int | None = Field(default=None, ge=0, description="Duration in minutes")
    outcome: ActivityOutcome = ActivityOutcome.PENDING


class ActivityUpdate(BaseModel):
    """Schema for updating an activity (all fields optional)."""

    type: ActivityType | None = None
    contact_id: int | None = None
    deal_id: int | None = None
    subject: str | None = None
    description: str | None = None
    date: datetime | None = None
    duration: int | None = Field(default=None, ge=0)
    outcome: ActivityOutcome | None = None


class Activity(ActivityCreate):
    """Schema for reading an activity."""

    id: int


# ── Sales Teams ─────────────────────────────────────────────────────────────


class SalesTeamCreate(BaseModel):
    """Schema for creating a sales team member entry."""

    name: str
    member_name: str | None = None
    description: str | None = None
    team_lead: str | None = None
    region: str | None = None
    user: str | None = None


class SalesTeamUpdate(BaseModel):
    """Schema for updating a sales team (all fields optional)."""

    name: str | None = None
    member_name: str | None = None
    description: str | None = None
    team_lead: str | None = None
    region: str | None = None
    user: str | None = None


class SalesTeam(SalesTeamCreate):
    """Schema for reading a sales team."""

    id: int
