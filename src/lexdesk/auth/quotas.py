"""
lexdesk.auth.quotas

Plan quota table for the plan-limit gate.

Responsibilities:
- Map (plan name, resource class) to a non-negative creation ceiling.
- Fail closed: a combination absent from the table has quota 0.
"""

from __future__ import annotations

from collections.abc import Mapping
from types import MappingProxyType

from lexdesk.auth.registry import ResourceClass


def _build(table: dict[tuple[str, str], int]) -> Mapping[tuple[str, str], int]:
    negative = {key: value for key, value in table.items() if value < 0}
    if negative:
        raise ValueError(f"plan quotas must not be negative: {negative}")
    return MappingProxyType(table)


PLAN_QUOTAS: Mapping[tuple[str, str], int] = _build(
    {
        ("Básico", ResourceClass.client): 10,
        ("Básico", ResourceClass.process): 20,
        ("Básico", ResourceClass.document): 50,
        ("Profissional", ResourceClass.client): 50,
        ("Profissional", ResourceClass.process): 100,
        ("Profissional", ResourceClass.document): 200,
        ("Premium", ResourceClass.client): 100,
        ("Premium", ResourceClass.process): 500,
        ("Premium", ResourceClass.document): 1000,
    }
)


def quota_for(
    plan_name: str,
    resource_class: str,
    *,
    table: Mapping[tuple[str, str], int] = PLAN_QUOTAS,
) -> int:
    return table.get((plan_name, str(resource_class)), 0)


# --- Module Notes -----------------------------------------------------------
# Appointments are deliberately absent: their create route mounts no quota gate.
# The trial plan ("Teste Gratuito") is absent too, so trial accounts cannot create
# quota-gated resources until they subscribe.
