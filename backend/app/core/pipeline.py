# app/core/pipeline.py
from __future__ import annotations

import enum


class OpportunityStatus(str, enum.Enum):
    PROSPECTING = "PROSPECTING"
    TECHNICAL_ANALYSIS = "TECHNICAL_ANALYSIS"  # engineering approval needed
    PROPOSAL_SENT = "PROPOSAL_SENT"
    CONTRACT_SIGNED = "CONTRACT_SIGNED"        # closing fee (20%)
    IN_DEVELOPMENT = "IN_DEVELOPMENT"
    DELIVERED = "DELIVERED"                    # success fee (10%)
    CLOSED_LOST = "CLOSED_LOST"


class ProjectType(str, enum.Enum):
    WEB = "WEB"
    MOBILE = "MOBILE"
    SITE = "SITE"
    LANDING_PAGE = "LANDING_PAGE"
    OTHER = "OTHER"


class Temperature(str, enum.Enum):
    HOT = "HOT"
    WARM = "WARM"
    COLD = "COLD"


class EngineeringApproval(str, enum.Enum):
    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"


class Complexity(str, enum.Enum):
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"


# An opportunity becomes a "project" once the contract is signed.
PROJECT_STAGES: frozenset[str] = frozenset(
    {
        OpportunityStatus.CONTRACT_SIGNED.value,
        OpportunityStatus.IN_DEVELOPMENT.value,
        OpportunityStatus.DELIVERED.value,
    }
)


def status_value(status) -> str:
    """
    Supports Enum members or plain strings (rows loaded from the DB hold strings).
    """
    v = getattr(status, "value", status)
    return str(v) if v is not None else ""


def is_project(status) -> bool:
    return status_value(status) in PROJECT_STAGES
