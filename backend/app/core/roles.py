# app/core/roles.py

import enum


class UserRole(str, enum.Enum):
    ADMIN = "ADMIN"                          # global access
    EXECUTIVE = "EXECUTIVE"                  # own pipeline only
    EXECUTIVE_LEADER = "EXECUTIVE_LEADER"    # own pipeline + led executives
    ENGINEER = "ENGINEER"                    # all technical work / projects
    PROGRAMMER = "PROGRAMMER"                # timesheet only
    FINANCE = "FINANCE"                      # contracts and payouts


EXECUTIVE_ROLES = frozenset({UserRole.EXECUTIVE.value, UserRole.EXECUTIVE_LEADER.value})


def normalize_role(role: str | None) -> str:
    return (role or "").strip().upper()
