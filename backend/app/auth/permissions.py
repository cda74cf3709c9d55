from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, FrozenSet, Iterable, Mapping

from app.core.pipeline import is_project
from app.core.roles import EXECUTIVE_ROLES, UserRole, normalize_role

ROLE_ADMIN = UserRole.ADMIN.value
ROLE_EXECUTIVE = UserRole.EXECUTIVE.value
ROLE_EXECUTIVE_LEADER = UserRole.EXECUTIVE_LEADER.value
ROLE_ENGINEER = UserRole.ENGINEER.value
ROLE_PROGRAMMER = UserRole.PROGRAMMER.value
ROLE_FINANCE = UserRole.FINANCE.value

# Resource kinds understood by can_view()
RESOURCE_OPPORTUNITY = "opportunity"
RESOURCE_COMMISSION = "commission"
RESOURCE_FINANCIALS = "financials"
RESOURCE_TEAM = "team"
RESOURCE_USERS = "users"


@dataclass(frozen=True)
class Actor:
    """
    Who is asking. network_ids are the executives led by an EXECUTIVE_LEADER
    (empty for everyone else).
    """

    id: str
    role: str
    network_ids: FrozenSet[str] = field(default_factory=frozenset)

    @classmethod
    def build(cls, *, user_id: Any, role: str | None, network_ids: Iterable[Any] | None = None) -> "Actor":
        return cls(
            id=str(user_id),
            role=normalize_role(role),
            network_ids=frozenset(str(i) for i in (network_ids or ())),
        )


@dataclass(frozen=True)
class Resource:
    kind: str
    owner_id: str | None = None
    status: str | None = None


def _owner(obj: Any) -> str | None:
    v = getattr(obj, "executive_id", None)
    return str(v) if v is not None else None


def _owns_or_leads(actor: Actor, owner_id: str | None) -> bool:
    if owner_id is None:
        return False
    if owner_id == actor.id:
        return True
    return actor.role == ROLE_EXECUTIVE_LEADER and owner_id in actor.network_ids


# ---------------------------------------------------------
# Opportunities (sales pipeline)
# ---------------------------------------------------------
def can_view_all_opportunities(actor: Actor) -> bool:
    return actor.role in {ROLE_ADMIN, ROLE_ENGINEER}


def can_view_opportunity(actor: Actor, opportunity: Any) -> bool:
    if can_view_all_opportunities(actor):
        return True
    # FINANCE sees contracts/payments and PROGRAMMER only assigned work, never the pipeline
    if actor.role in EXECUTIVE_ROLES:
        return _owns_or_leads(actor, _owner(opportunity))
    return False


def can_create_opportunity(actor: Actor) -> bool:
    return actor.role in {ROLE_ADMIN, ROLE_EXECUTIVE, ROLE_EXECUTIVE_LEADER}


def can_edit_opportunity(actor: Actor, opportunity: Any) -> bool:
    if actor.role in {ROLE_ADMIN, ROLE_ENGINEER}:
        return True
    return actor.role in EXECUTIVE_ROLES and _owner(opportunity) == actor.id


def can_archive_opportunity(actor: Actor, opportunity: Any) -> bool:
    if actor.role == ROLE_ADMIN:
        return True
    return actor.role in EXECUTIVE_ROLES and _owner(opportunity) == actor.id


# ---------------------------------------------------------
# Projects (CONTRACT_SIGNED / IN_DEVELOPMENT / DELIVERED)
# ---------------------------------------------------------
def can_view_all_projects(actor: Actor) -> bool:
    return actor.role in {ROLE_ADMIN, ROLE_ENGINEER, ROLE_FINANCE}


def can_view_project(actor: Actor, opportunity: Any) -> bool:
    if not is_project(getattr(opportunity, "status", None)):
        return False
    if can_view_all_projects(actor):
        return True
    if actor.role in EXECUTIVE_ROLES:
        return _owns_or_leads(actor, _owner(opportunity))
    # PROGRAMMER: no assignment model, strict deny
    return False


def can_see(actor: Actor, opportunity: Any) -> bool:
    """Visible either as a pipeline opportunity or as a project."""
    return can_view_opportunity(actor, opportunity) or can_view_project(actor, opportunity)


# ---------------------------------------------------------
# Financials / commissions
# ---------------------------------------------------------
def can_view_financials(actor: Actor) -> bool:
    return actor.role in {ROLE_ADMIN, ROLE_FINANCE}


def can_view_own_commission(actor: Actor) -> bool:
    return actor.role in EXECUTIVE_ROLES


def can_view_commission(actor: Actor, opportunity: Any) -> bool:
    """
    opportunity is the record's originating opportunity.
    Executives see only commissions on their own opportunities.
    """
    if can_view_financials(actor):
        return True
    return can_view_own_commission(actor) and _owner(opportunity) == actor.id


def can_settle_commissions(actor: Actor) -> bool:
    return can_view_financials(actor)


# ---------------------------------------------------------
# Users / team / timesheet
# ---------------------------------------------------------
def can_manage_users(actor: Actor) -> bool:
    return actor.role == ROLE_ADMIN


def can_view_team(actor: Actor) -> bool:
    return actor.role in {ROLE_ADMIN, ROLE_EXECUTIVE_LEADER}


def can_log_hours(actor: Actor) -> bool:
    return actor.role in {ROLE_ADMIN, ROLE_ENGINEER, ROLE_PROGRAMMER}


def can_view_all_timesheets(actor: Actor) -> bool:
    return actor.role in {ROLE_ADMIN, ROLE_ENGINEER}


# ---------------------------------------------------------
# Single capability-check entry point
# ---------------------------------------------------------
@dataclass(frozen=True)
class _ResourceView:
    resource: Resource

    @property
    def executive_id(self) -> str | None:
        return self.resource.owner_id

    @property
    def status(self) -> str | None:
        return self.resource.status


_VIEW_CHECKS: Mapping[str, Callable[[Actor, Resource], bool]] = {
    RESOURCE_OPPORTUNITY: lambda a, r: can_see(a, _ResourceView(r)),
    RESOURCE_COMMISSION: lambda a, r: can_view_commission(a, _ResourceView(r)),
    RESOURCE_FINANCIALS: lambda a, r: can_view_financials(a),
    RESOURCE_TEAM: lambda a, r: can_view_team(a),
    RESOURCE_USERS: lambda a, r: can_manage_users(a),
}


def can_view(actor: Actor, resource: Resource) -> bool:
    """
    Unknown resource kinds are denied.
    """
    check = _VIEW_CHECKS.get(resource.kind)
    if check is None:
        return False
    return check(actor, resource)
