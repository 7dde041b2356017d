"""
Procedure template catalog endpoints
"""
from fastapi import APIRouter, Depends, HTTPException, status, Query
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from typing import List, Optional

from app.core.auth import Principal, require_auth, require_admin
from database import get_async_session
from app.models import ProcedureTemplate
from app.schemas.auth import MessageResponse
from app.schemas.procedure import ProcedureTemplateCreate, ProcedureTemplateUpdate, ProcedureTemplateResponse
from app.services.activity import log_activity
from app.services.repository import get_or_404, apply_updates

router = APIRouter(prefix="/procedure-templates", tags=["Procedure Templates"])


@router.get("", response_model=List[ProcedureTemplateResponse])
async def list_templates(
    is_active: Optional[bool] = Query(None, description="Filter by active status"),
    principal: Principal = Depends(require_auth),
    db: AsyncSession = Depends(get_async_session)
):
    query = select(ProcedureTemplate)
    if is_active is not None:
        query = query.filter(ProcedureTemplate.is_active == is_active)

    result = await db.execute(query.order_by(ProcedureTemplate.name))
    return result.scalars().all()


@router.get("/{template_id}", response_model=ProcedureTemplateResponse)
async def get_template(
    template_id: str,
    principal: Principal = Depends(require_auth),
    db: AsyncSession = Depends(get_async_session)
):
    return await get_or_404(db, ProcedureTemplate, template_id, "Procedure template not found")


@router.post("", response_model=ProcedureTemplateResponse, status_code=status.HTTP_201_CREATED)
async def create_template(
    template_in: ProcedureTemplateCreate,
    principal: Principal = Depends(require_admin),
    db: AsyncSession = Depends(get_async_session)
):
    """
    Create a procedure template (admin only)
    """
    existing = await db.execute(select(ProcedureTemplate).filter(ProcedureTemplate.name == template_in.name))
    if existing.scalar_one_or_none():
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="A procedure template with this name already exists"
        )

    template = ProcedureTemplate(**template_in.model_dump())
    db.add(template)
    await db.flush()

    log_activity(db, principal.user_id, "procedure_template_created", f"Created template: {template.name}", template.id, "procedure_template")
    await db.commit()
    return template


@router.put("/{template_id}", response_model=ProcedureTemplateResponse)
async def update_template(
    template_id: str,
    template_in: ProcedureTemplateUpdate,
    principal: Principal = Depends(require_admin),
    db: AsyncSession = Depends(get_async_session)
):
    template = await get_or_404(db, ProcedureTemplate, template_id, "Procedure template not found")
    apply_updates(template, template_in)

    log_activity(db, principal.user_id, "procedure_template_updated", f"Updated template: {template.name}", template.id, "procedure_template")
    await db.commit()
    return template


@router.delete("/{template_id}", response_model=MessageResponse)
async def delete_template(
    template_id: str,
    principal: Principal = Depends(require_admin),
    db: AsyncSession = Depends(get_async_session)
):
    """
    Retire a template.
    The row is kept (is_active=false) so procedures sold from it keep their reference.
    """
    template = await get_or_404(db, ProcedureTemplate, template_id, "Procedure template not found")

    template.is_active = False
    log_activity(db, principal.user_id, "procedure_template_deleted", f"Deactivated template: {template.name}", template.id, "procedure_template")
    await db.commit()
    return MessageResponse(message="Procedure template deactivated successfully")
