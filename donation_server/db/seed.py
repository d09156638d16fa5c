"""Populate the database with demo categories and a donor asynchronously."""

import asyncio
from sqlalchemy import delete

from donation_server.db.base_class import Base
from donation_server.db.session import DATABASE_URL, SessionLocal, engine
from donation_server.models.category import Category
from donation_server.models.donation import Donation
from donation_server.models.user import User

print(f"Using database: {DATABASE_URL}")

CATEGORIES = [
    ("Food Distribution", "Meals for families in need", 500.0),
    ("Education Support", "School supplies and fees for children", 1000.0),
    ("Medical Aid", "Medicines and treatment support", 1500.0),
    ("Cow Shelter", "Fodder and care for rescued cattle", 750.0),
]


async def main() -> None:
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async with SessionLocal() as session:
        print("Clearing tables...")
        await session.execute(delete(Donation))
        await session.execute(delete(Category))
        await session.execute(delete(User))

        print("Adding categories...")
        for name, description, amount in CATEGORIES:
            session.add(Category(name=name, sort_description=description, donation_amount=amount))

        print("Adding demo donor...")
        session.add(User(name="Asha Sharma", email="asha.sharma@example.com", phone="+91 9812345678"))
        await session.commit()

    print("Database seeded.")


if __name__ == "__main__":
    asyncio.run(main())
