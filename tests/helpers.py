import asyncio
import hashlib
import sys
import uuid
from pathlib import Path

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool

sys.path.append(str(Path(__file__).resolve().parents[1]))

from donation_server.config import PayUConfig
from donation_server.db.base_class import Base
from donation_server.models.category import Category
from donation_server.models.donation import Donation
from donation_server.services import donation_service

TEST_CONFIG = PayUConfig(
    merchant_key="gtKFFx",
    merchant_salt="eCwWELxi",
    base_url="https://test.payu.in",
    frontend_success_url="http://frontend.test/payment-success",
    frontend_failure_url="http://frontend.test/payment-failure",
)


def setup_test_db(tmp_path):
    engine = create_async_engine(
        f"sqlite+aiosqlite:///{tmp_path / 'test.db'}", poolclass=NullPool
    )
    TestingSessionLocal = async_sessionmaker(bind=engine, expire_on_commit=False)

    async def init_models():
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    asyncio.run(init_models())
    return TestingSessionLocal


def seed_category(SessionLocal, name="Food Distribution"):
    async def seed():
        async with SessionLocal() as db:
            category = Category(name=name, sort_description="Meals", donation_amount=500.0)
            db.add(category)
            await db.commit()
            return category.id

    return asyncio.run(seed())


def create_donation(SessionLocal, category_id, transaction_id=None, **overrides):
    fields = dict(
        transaction_id=transaction_id or f"TXN{uuid.uuid4().hex[:12]}",
        donor_name="Asha",
        donor_email="a@x.com",
        donor_phone="",
        category_id=category_id,
        user_id=None,
        item="Donation",
        quantity=1,
        amount=500.0,
        base_amount=500.0,
        extra_amount=0.0,
    )
    fields.update(overrides)

    async def create():
        async with SessionLocal() as db:
            donation = await donation_service.create_pending_donation(db, **fields)
            return donation.id

    return asyncio.run(create())


def load_donation(SessionLocal, donation_id) -> Donation:
    async def load():
        async with SessionLocal() as db:
            return await donation_service.get_donation(db, donation_id)

    return asyncio.run(load())


def count_donations(SessionLocal) -> int:
    async def count():
        async with SessionLocal() as db:
            return (await db.execute(select(func.count(Donation.id)))).scalar_one()

    return asyncio.run(count())


def response_hash(config, fields):
    """Hash PayU puts on its callbacks, written out independently of the app code."""
    hash_string = (
        f"{config.merchant_salt}|{fields.get('status', '')}||||||"
        f"{fields.get('udf5', '')}|{fields.get('udf4', '')}|{fields.get('udf3', '')}|"
        f"{fields.get('udf2', '')}|{fields.get('udf1', '')}|{fields.get('email', '')}|"
        f"{fields.get('firstname', '')}|{fields.get('productinfo', '')}|"
        f"{fields.get('amount', '')}|{fields.get('txnid', '')}|{config.merchant_key}"
    )
    return hashlib.sha512(hash_string.encode("utf-8")).hexdigest()


def gateway_payload(donation_id, status="success", config=TEST_CONFIG, sign=True, **extra):
    payload = {
        "txnid": "TXN1729330000000123456",
        "amount": "500.00",
        "productinfo": "Donation",
        "firstname": "Asha",
        "email": "a@x.com",
        "status": status,
        "udf1": "category-1",
        "udf2": "Meals",
        "udf3": "1",
        "udf4": donation_id,
        "udf5": "",
        "mihpayid": "403993715521937",
        "mode": "UPI",
        "bank_ref_num": "5301 8842/AX-07",
    }
    payload.update(extra)
    if sign:
        payload["hash"] = response_hash(config, payload)
    return payload
