"""
Seed Database with Test Data
Run this script to populate the database with a city, an admin, collaborators,
procedure templates and a few patients for local testing
"""

import asyncio
from decimal import Decimal

from sqlalchemy import select

from app.core.auth import hash_password
from app.models import (
    User, City, Collaborator, Patient, ProcedureTemplate,
    UserRole, Classification,
)
from database import AsyncSessionLocal, engine


CITIES = [
    {"name": "Recife", "state": "PE", "monthly_goal": "50000.00"},
    {"name": "São Paulo", "state": "SP", "monthly_goal": "120000.00"},
]

USERS = [
    {"username": "admin", "password": "admin123", "name": "Administrador", "role": UserRole.ADMIN},
    {"username": "maria", "password": "maria123", "name": "Maria Souza", "role": UserRole.COLLABORATOR,
     "city": "Recife", "revenue_goal": "20000.00", "consultation_goal": 40},
    {"username": "joao", "password": "joao123", "name": "João Lima", "role": UserRole.COLLABORATOR,
     "city": "São Paulo", "revenue_goal": "30000.00", "consultation_goal": 60},
]

TEMPLATES = [
    {"name": "Botox", "default_price": "1500.00", "validity_days": 180, "category": "Injetáveis"},
    {"name": "Preenchimento labial", "default_price": "2200.00", "validity_days": 365, "category": "Injetáveis"},
    {"name": "Limpeza de pele", "default_price": "250.00", "validity_days": 30, "category": "Estética"},
]

PATIENTS = [
    {"name": "Ana Beatriz", "phone": "+5581998765432", "classification": Classification.GOLD, "owner": "maria"},
    {"name": "Carlos Eduardo", "phone": "+5581987654321", "classification": Classification.SILVER, "owner": "maria"},
    {"name": "Fernanda Alves", "phone": "+5511976543210", "classification": Classification.DIAMOND, "owner": "joao"},
]


async def _get_by(session, model, **filters):
    result = await session.execute(select(model).filter_by(**filters))
    return result.scalar_one_or_none()


async def seed_database():
    """Seed the database with test data"""
    async with AsyncSessionLocal() as session:
        print("🌱 Starting database seed...")

        cities = {}
        for data in CITIES:
            city = await _get_by(session, City, name=data["name"])
            if not city:
                city = City(**data)
                session.add(city)
                await session.flush()
                print(f"✅ Created city: {city.name}/{city.state}")
            else:
                print(f"⏭️  City already exists: {city.name}")
            cities[city.name] = city

        collaborators = {}
        for data in USERS:
            user = await _get_by(session, User, username=data["username"])
            if not user:
                user = User(
                    username=data["username"],
                    name=data["name"],
                    hashed_password=hash_password(data["password"]),
                    role=data["role"],
                )
                session.add(user)
                await session.flush()
                print(f"✅ Created user: {user.username} ({user.role.value}) - Password: {data['password']}")
            else:
                print(f"⏭️  User already exists: {data['username']}")

            if data["role"] != UserRole.COLLABORATOR:
                continue

            collaborator = await _get_by(session, Collaborator, user_id=user.id)
            if not collaborator:
                collaborator = Collaborator(
                    user_id=user.id,
                    city_id=cities[data["city"]].id,
                    revenue_goal=Decimal(data["revenue_goal"]),
                    consultation_goal=data["consultation_goal"],
                )
                session.add(collaborator)
                await session.flush()
                print(f"✅ Created collaborator profile for {user.username}")
            collaborators[user.username] = collaborator

        for data in TEMPLATES:
            if not await _get_by(session, ProcedureTemplate, name=data["name"]):
                session.add(ProcedureTemplate(
                    name=data["name"],
                    default_price=Decimal(data["default_price"]),
                    validity_days=data["validity_days"],
                    category=data["category"],
                ))
                print(f"✅ Created procedure template: {data['name']}")

        for data in PATIENTS:
            if await _get_by(session, Patient, name=data["name"]):
                print(f"⏭️  Patient already exists: {data['name']}")
                continue
            collaborator = collaborators[data["owner"]]
            session.add(Patient(
                name=data["name"],
                phone=data["phone"],
                classification=data["classification"],
                collaborator_id=collaborator.id,
                city_id=collaborator.city_id,
                is_registration_complete=True,
            ))
            print(f"✅ Created patient: {data['name']}")

        await session.commit()

    await engine.dispose()

    print("\n" + "=" * 50)
    print("🎉 Database seeding completed!")
    print("=" * 50)
    print("\n📝 Test Credentials:\n")
    for data in USERS:
        print(f"{data['name']} ({data['role'].value}):")
        print(f"  Username: {data['username']}")
        print(f"  Password: {data['password']}")
    print("\n" + "=" * 50)


if __name__ == "__main__":
    asyncio.run(seed_database())
