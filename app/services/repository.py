"""
Storage access helpers shared by the routers and services.
Lookups, scoping filters and partial updates live here so that
handlers only express their own rules.
"""

from typing import Any, Dict, Optional, Type, TypeVar

from pydantic import BaseModel as SchemaModel
from sqlalchemy import select, func, false
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.auth import Principal
from app.core.dates import utcnow
from app.services.errors import NotFoundError, PermissionDeniedError

ModelT = TypeVar("ModelT")


async def fetch(db: AsyncSession, model: Type[ModelT], entity_id: str) -> Optional[ModelT]:
    """
    Load one row by id, refreshing any copy already in the session so that
    eagerly loaded relationships reflect the latest foreign keys.
    """
    # Pending changes would otherwise be overwritten by the reload
    await db.flush()
    result = await db.execute(
        select(model)
        .filter(model.id == entity_id)
        .execution_options(populate_existing=True)
    )
    return result.scalar_one_or_none()


async def get_or_404(db: AsyncSession, model: Type[ModelT], entity_id: str, detail: str) -> ModelT:
    """
    Load one row by id or raise NotFoundError with ``detail``
    """
    instance = await fetch(db, model, entity_id)
    if instance is None:
        raise NotFoundError(detail)
    return instance


async def count_rows(db: AsyncSession, model, *criteria) -> int:
    result = await db.execute(select(func.count(model.id)).filter(*criteria))
    return result.scalar_one()


def apply_updates(instance, update: SchemaModel) -> Dict[str, Any]:
    """
    Apply the fields explicitly sent in a partial-update schema.

    Each ``*Update`` schema is the patchable-field whitelist for its entity:
    unknown keys are rejected at validation time, so only recognized columns
    ever reach the ORM instance.

    Args:
        instance: ORM object to mutate
        update: validated update schema

    Returns:
        Mapping of the fields that were applied
    """
    changes = update.model_dump(exclude_unset=True)
    for field, value in changes.items():
        setattr(instance, field, value)
    if changes and hasattr(instance, "updated_at"):
        instance.updated_at = utcnow()
    return changes


def scope_filter(column, principal: Principal):
    """
    Row filter limiting a collaborator to their own rows.
    Admins get no filter; a collaborator-role user without a collaborator
    record matches nothing.
    """
    if not principal.scoped:
        return None
    if principal.collaborator_id is None:
        return false()
    return column == principal.collaborator_id


def scoped(query, column, principal: Principal):
    criterion = scope_filter(column, principal)
    if criterion is None:
        return query
    return query.filter(criterion)


def ensure_patient_access(patient, principal: Principal) -> None:
    """
    Collaborators may act on their own patients and on unassigned ones
    """
    if not principal.scoped:
        return
    if patient.collaborator_id is None:
        return
    if patient.collaborator_id != principal.collaborator_id:
        raise PermissionDeniedError("You can only access your own patients")


def ensure_collaborator_access(collaborator_id: str, principal: Principal) -> None:
    """
    Collaborators may only act on their own collaborator-scoped resources
    """
    if principal.scoped and collaborator_id != principal.collaborator_id:
        raise PermissionDeniedError("You can only access your own records")
