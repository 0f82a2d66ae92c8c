"""
Occupation model: one enriched row per SOC occupation code.
"""

import re
from dataclasses import dataclass
from typing import Optional
from sqlmodel import Field, SQLModel
from datetime import datetime

from occsync.core.typing import utc_now

# SOC codes look like "15-1252"
OCC_CODE_PATTERN = re.compile(r"^\d{2}-\d{4}$")


def is_valid_occ_code(code: str) -> bool:
    return bool(OCC_CODE_PATTERN.match(code or ""))


@dataclass(frozen=True)
class WorkItem:
    """One occupation code to synchronize."""

    code: str
    title: Optional[str] = None


class Occupation(SQLModel, table=True):
    """Occupation statistics enriched with an automation risk assessment."""

    id: Optional[int] = Field(default=None, primary_key=True)
    occ_code: str = Field(index=True, unique=True, max_length=7)
    occ_title: str

    # Upstream statistics (latest published value)
    employment: Optional[int] = Field(default=None)
    median_wage: Optional[float] = Field(default=None)

    # Derived risk assessment
    risk_score: Optional[int] = Field(default=None, index=True)  # 0-100
    risk_category: Optional[str] = Field(default=None)
    skills_at_risk: Optional[str] = Field(default=None)  # Comma-separated
    skills_needed: Optional[str] = Field(default=None)  # Comma-separated
    future_outlook: Optional[str] = Field(default=None)

    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)


# Columns copied onto an existing row by an upsert when the new value is not None
UPSERT_FIELDS = (
    "occ_title",
    "employment",
    "median_wage",
    "risk_score",
    "risk_category",
    "skills_at_risk",
    "skills_needed",
    "future_outlook",
)


def validate_occupation(record: Occupation) -> list[str]:
    """
    Check a derived record before it is written.

    Returns:
        Human-readable problems; empty when the record is valid
    """
    errors: list[str] = []

    if not record.occ_code:
        errors.append("occ_code is required")
    elif not is_valid_occ_code(record.occ_code):
        errors.append(f"occ_code must match XX-XXXX, got {record.occ_code!r}")

    if not record.occ_title or not record.occ_title.strip():
        errors.append("occ_title is required")

    if record.employment is not None and record.employment < 0:
        errors.append("employment must be non-negative")
    if record.median_wage is not None and record.median_wage < 0:
        errors.append("median_wage must be non-negative")

    if record.risk_score is not None and not 0 <= record.risk_score <= 100:
        errors.append("risk_score must be between 0 and 100")

    return errors
