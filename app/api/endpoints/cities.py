"""
City management API endpoints
"""
from typing import List
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select

from app.core.auth import Principal, require_auth, require_admin
from app.models import City, Collaborator, Patient
from app.schemas.city import CityCreate, CityUpdate, CityResponse, CityMetricsResponse
from app.schemas.auth import MessageResponse
from app.services.activity import log_activity
from app.services.metrics import city_metrics
from app.services.repository import get_or_404, count_rows, apply_updates
from database import get_async_session

router = APIRouter(prefix="/cities", tags=["Cities"])


async def _ensure_unique_name(db: AsyncSession, name: str, exclude_id: str = None):
    query = select(City).filter(City.name == name)
    if exclude_id:
        query = query.filter(City.id != exclude_id)
    result = await db.execute(query)
    if result.scalar_one_or_none():
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="A city with this name already exists"
        )


@router.get("", response_model=List[CityResponse])
async def list_cities(
    principal: Principal = Depends(require_auth),
    db: AsyncSession = Depends(get_async_session),
):
    result = await db.execute(select(City).order_by(City.name))
    return result.scalars().all()


@router.get("/metrics", response_model=List[CityMetricsResponse])
async def get_city_metrics(
    principal: Principal = Depends(require_auth),
    db: AsyncSession = Depends(get_async_session),
):
    """
    Patients, collaborators, current-month revenue and goal progress per city
    """
    return await city_metrics(db)


@router.post("", response_model=CityResponse, status_code=status.HTTP_201_CREATED)
async def create_city(
    city_in: CityCreate,
    principal: Principal = Depends(require_admin),
    db: AsyncSession = Depends(get_async_session),
):
    await _ensure_unique_name(db, city_in.name)

    city = City(**city_in.model_dump())
    db.add(city)
    await db.flush()

    log_activity(db, principal.user_id, "city_created", f"Created city: {city.name}/{city.state}", city.id, "city")
    await db.commit()
    return city


@router.put("/{city_id}", response_model=CityResponse)
async def update_city(
    city_id: str,
    city_in: CityUpdate,
    principal: Principal = Depends(require_admin),
    db: AsyncSession = Depends(get_async_session),
):
    city = await get_or_404(db, City, city_id, "City not found")

    if city_in.name and city_in.name != city.name:
        await _ensure_unique_name(db, city_in.name, exclude_id=city.id)

    apply_updates(city, city_in)

    log_activity(db, principal.user_id, "city_updated", f"Updated city: {city.name}", city.id, "city")
    await db.commit()
    return city


@router.delete("/{city_id}", response_model=MessageResponse)
async def delete_city(
    city_id: str,
    principal: Principal = Depends(require_admin),
    db: AsyncSession = Depends(get_async_session),
):
    """
    Delete a city.
    Blocked while collaborators or patients still reference it.
    """
    city = await get_or_404(db, City, city_id, "City not found")

    collaborators = await count_rows(db, Collaborator, Collaborator.city_id == city.id)
    if collaborators:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Não é possível excluir uma cidade com colaboradores ativos ({collaborators} colaborador(es))"
        )

    patients = await count_rows(db, Patient, Patient.city_id == city.id)
    if patients:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Não é possível excluir uma cidade com pacientes vinculados ({patients} paciente(s))"
        )

    name = city.name
    await db.delete(city)
    log_activity(db, principal.user_id, "city_deleted", f"Deleted city: {name}", city_id, "city")
    await db.commit()
    return MessageResponse(message="City deleted successfully")
