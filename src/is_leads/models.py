"""
IS Lead (Inside Sales Lead) data model.

IS Leads are prospects tracked by the inside sales team, acquired through
Instagram, Email, the website (HP) or Alibaba. Records live in Twenty CRM,
which uses camelCase field names; this module uses snake_case attributes and
converts at the boundary.
"""

import dataclasses
from dataclasses import dataclass, fields
from enum import Enum
from typing import Any, Dict, List, Optional, Union

from .date_utils import validate_date
from .errors import RemoteError, ValidationError


class IsLeadPhase(str, Enum):
    """Pipeline stage of an IS Lead."""

    VALID_REPLY = "VALID_REPLY"
    LOST = "LOST"
    ON_HOLD = "ON_HOLD"
    CONVERTED = "CONVERTED"


class LeadSource(str, Enum):
    """Channel the lead was acquired through."""

    INSTAGRAM = "INSTAGRAM"
    EMAIL = "EMAIL"
    HP = "HP"
    ALIBABA = "ALIBABA"


# Active work first, terminal outcomes last
PHASE_ORDER = (
    IsLeadPhase.VALID_REPLY,
    IsLeadPhase.ON_HOLD,
    IsLeadPhase.CONVERTED,
    IsLeadPhase.LOST,
)

PHASE_LABELS = {
    IsLeadPhase.VALID_REPLY: "Valid Reply (Active)",
    IsLeadPhase.ON_HOLD: "On Hold (Pending)",
    IsLeadPhase.CONVERTED: "Converted (Won)",
    IsLeadPhase.LOST: "Lost",
}


class _Clear:
    """Sentinel type for explicitly clearing a field on update."""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self):
        return "CLEAR"

    def __bool__(self):
        return False


CLEAR = _Clear()

DATE_FIELDS = ("first_approach_date", "last_contact_date")


def to_camel(name: str) -> str:
    """price_range_min -> priceRangeMin"""
    head, *rest = name.split("_")
    return head + "".join(part.capitalize() for part in rest)


def parse_phase(value: Any) -> str:
    """Validate a phase value and return its canonical string."""
    try:
        return IsLeadPhase(str(value).strip().upper()).value
    except ValueError:
        raise ValidationError(
            f"Invalid phase: {value!r}. "
            f"Must be one of: {', '.join(p.value for p in IsLeadPhase)}"
        )


def parse_lead_source(value: Any) -> str:
    """Validate a lead source value and return its canonical string."""
    try:
        return LeadSource(str(value).strip().upper()).value
    except ValueError:
        raise ValidationError(
            f"Invalid lead source: {value!r}. "
            f"Must be one of: {', '.join(s.value for s in LeadSource)}"
        )


def is_known_phase(value: Any) -> bool:
    return value in IsLeadPhase._value2member_map_


def _blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def _check_quantity(value: Any):
    if isinstance(value, (int, float)) and value < 0:
        raise ValidationError(f"Invalid quantity: {value}. Quantity (kg) must be >= 0")


@dataclass
class IsLead:
    """An IS Lead record as stored in the CRM."""

    id: str
    name: str
    phase: Optional[str] = IsLeadPhase.VALID_REPLY.value
    country: Optional[str] = None
    industry: Optional[str] = None
    lead_source: Optional[str] = None
    instagram_account: Optional[str] = None
    customer_needs: Optional[str] = None
    quantity: Optional[float] = None
    price_range_min: Optional[float] = None
    price_range_max: Optional[float] = None
    expected_revenue: Optional[float] = None
    first_approach_date: Optional[str] = None
    first_approach_message: Optional[str] = None
    last_contact_date: Optional[str] = None
    lost_reason: Optional[str] = None
    memo: Optional[str] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None

    @classmethod
    def from_dict(cls, record: Dict[str, Any]) -> "IsLead":
        """
        Build an IsLead from a camelCase CRM record.

        Unknown keys are ignored. A phase outside the known values, or a
        missing one, is kept as-is so reporting can flag it.

        Raises:
            RemoteError: If the record has no id
        """
        record_id = record.get("id")
        if _blank(record_id):
            raise RemoteError("CRM returned an IS Lead without an id")

        values = {}
        for f in fields(cls):
            key = to_camel(f.name)
            if key in record and record[key] is not None:
                values[f.name] = record[key]

        # Date fields may come back as timestamps; keep the calendar date only
        for name in DATE_FIELDS:
            if isinstance(values.get(name), str):
                values[name] = values[name][:10]

        values["id"] = str(record_id)
        values.setdefault("name", "")
        # A missing phase is drift too; it must not land in VALID_REPLY
        values["phase"] = record.get("phase")
        return cls(**values)

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to a camelCase dict, omitting empty fields."""
        return {
            to_camel(f.name): getattr(self, f.name)
            for f in fields(self)
            if getattr(self, f.name) is not None
        }


@dataclass
class CreateIsLeadInput:
    """Input for creating an IS Lead. Only name is required."""

    name: str
    phase: Optional[str] = None
    country: Optional[str] = None
    industry: Optional[str] = None
    lead_source: Optional[str] = None
    instagram_account: Optional[str] = None
    customer_needs: Optional[str] = None
    quantity: Optional[float] = None
    price_range_min: Optional[float] = None
    price_range_max: Optional[float] = None
    expected_revenue: Optional[float] = None
    first_approach_date: Optional[str] = None
    first_approach_message: Optional[str] = None
    last_contact_date: Optional[str] = None
    lost_reason: Optional[str] = None
    memo: Optional[str] = None

    def __post_init__(self):
        if _blank(self.name):
            raise ValidationError("name is required to create an IS Lead")
        self.name = self.name.strip()

        self.phase = parse_phase(self.phase) if not _blank(self.phase) else IsLeadPhase.VALID_REPLY.value
        if not _blank(self.lead_source):
            self.lead_source = parse_lead_source(self.lead_source)

        _check_quantity(self.quantity)
        for name in DATE_FIELDS:
            setattr(self, name, validate_date(getattr(self, name), to_camel(name)))

    def to_payload(self) -> Dict[str, Any]:
        """Request body for the CRM. Absent and blank fields are omitted."""
        return {
            to_camel(f.name): getattr(self, f.name)
            for f in fields(self)
            if not _blank(getattr(self, f.name))
        }


FieldValue = Union[str, float, int, None, _Clear]


@dataclass
class UpdateIsLeadInput:
    """
    Partial update for an IS Lead, addressed by id.

    None or a blank string means "not provided" and leaves the stored value
    untouched. Use CLEAR to remove a stored value.
    """

    id: str
    name: FieldValue = None
    phase: FieldValue = None
    country: FieldValue = None
    industry: FieldValue = None
    lead_source: FieldValue = None
    instagram_account: FieldValue = None
    customer_needs: FieldValue = None
    quantity: FieldValue = None
    price_range_min: FieldValue = None
    price_range_max: FieldValue = None
    expected_revenue: FieldValue = None
    first_approach_date: FieldValue = None
    first_approach_message: FieldValue = None
    last_contact_date: FieldValue = None
    lost_reason: FieldValue = None
    memo: FieldValue = None

    def __post_init__(self):
        if _blank(self.id):
            raise ValidationError("id is required to update an IS Lead")
        self.id = str(self.id).strip()

        for required in ("name", "phase"):
            if getattr(self, required) is CLEAR:
                raise ValidationError(f"{required} cannot be cleared")

        if not _blank(self.name):
            self.name = self.name.strip()
        if not _blank(self.phase):
            self.phase = parse_phase(self.phase)
        if not _blank(self.lead_source) and self.lead_source is not CLEAR:
            self.lead_source = parse_lead_source(self.lead_source)

        _check_quantity(self.quantity)
        for name in DATE_FIELDS:
            value = getattr(self, name)
            if value is not CLEAR:
                setattr(self, name, validate_date(value, to_camel(name)))

    def changes(self) -> Dict[str, Any]:
        """Provided fields as a snake_case dict. CLEAR values map to None."""
        result = {}
        for f in fields(self):
            if f.name == "id":
                continue
            value = getattr(self, f.name)
            if value is CLEAR:
                result[f.name] = None
            elif not _blank(value):
                result[f.name] = value
        return result

    def has_changes(self) -> bool:
        return bool(self.changes())

    def to_payload(self) -> Dict[str, Any]:
        """PATCH body for the CRM. Cleared fields are sent as null."""
        return {to_camel(name): value for name, value in self.changes().items()}

    def with_last_contact_date(self, today: str) -> "UpdateIsLeadInput":
        """Stamp last_contact_date when something changed and no date was given."""
        if self.has_changes() and _blank(self.last_contact_date):
            return dataclasses.replace(self, last_contact_date=today)
        return self

    def apply_to(self, lead: IsLead) -> IsLead:
        """Merge this update onto a lead, overwriting only provided fields."""
        if lead.id != self.id:
            raise ValidationError(f"Update for {self.id} cannot be applied to {lead.id}")
        return dataclasses.replace(lead, **self.changes())


MAX_SEARCH_LIMIT = 200
DEFAULT_SEARCH_LIMIT = 20


@dataclass
class SearchIsLeadsInput:
    """Search filters. Every field is optional; empty input matches everything."""

    query: Optional[str] = None
    phase: Optional[str] = None
    lead_source: Optional[str] = None
    country: Optional[str] = None
    limit: int = DEFAULT_SEARCH_LIMIT
    offset: int = 0

    def __post_init__(self):
        self.query = None if _blank(self.query) else self.query.strip()
        self.country = None if _blank(self.country) else self.country.strip()
        self.phase = None if _blank(self.phase) else parse_phase(self.phase)
        self.lead_source = None if _blank(self.lead_source) else parse_lead_source(self.lead_source)

        if self.limit is None:
            self.limit = DEFAULT_SEARCH_LIMIT
        self.limit = max(1, min(int(self.limit), MAX_SEARCH_LIMIT))
        self.offset = max(0, int(self.offset or 0))

    def filters(self) -> List[str]:
        """Active filters as human-readable strings (for logging)."""
        active = []
        for name in ("query", "phase", "lead_source", "country"):
            value = getattr(self, name)
            if value is not None:
                active.append(f"{name}={value}")
        return active
