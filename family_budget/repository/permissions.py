"""
Permission Predicates

Two distinct rules guard budget mutations:

- family budgets may be managed by the family's owner or admins only
- a member's personal budget may be managed by that member, or by the
  family's owner or admins

Both take the actor's membership record as already fetched; a missing
record (not a member of this family) grants nothing.
"""

from typing import Optional

from family_budget.models import FamilyMember


def can_manage_budgets(actor: Optional[FamilyMember]) -> bool:
    """Whether the actor may create, change or delete family budgets."""
    return actor is not None and actor.can_manage_budgets


def can_manage_personal_budget(
    actor_id: str,
    member_id: str,
    actor: Optional[FamilyMember] = None,
) -> bool:
    """Whether the actor may manage member_id's personal budgets."""
    if actor_id == member_id:
        return True
    return can_manage_budgets(actor)
