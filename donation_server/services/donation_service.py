"""Operations for managing :class:`Donation` records asynchronously."""

from typing import Any, Dict, Optional

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from donation_server.models.donation import Donation, DonationStatus, PaymentStatus


async def create_pending_donation(db: AsyncSession, **fields) -> Donation:
    donation = Donation(
        status=DonationStatus.PENDING,
        payment_status=PaymentStatus.PENDING,
        **fields,
    )
    db.add(donation)
    try:
        await db.commit()
    except Exception:
        await db.rollback()
        raise
    await db.refresh(donation)
    return donation


async def get_donation(db: AsyncSession, donation_id: str) -> Optional[Donation]:
    result = await db.execute(select(Donation).filter(Donation.id == donation_id))
    return result.scalars().first()


async def get_donation_by_transaction_id(db: AsyncSession, transaction_id: str) -> Optional[Donation]:
    result = await db.execute(
        select(Donation)
        .options(selectinload(Donation.category), selectinload(Donation.user))
        .filter_by(transaction_id=transaction_id)
    )
    return result.scalars().first()


async def update_donation(
    db: AsyncSession, donation_id: str, values: Dict[str, Any], only_if_pending: bool = False
) -> int:
    """Apply ``values`` with a single UPDATE by id and return the matched row count.

    With ``only_if_pending`` the row is only touched while its payment status
    is still Pending.
    """
    stmt = update(Donation).where(Donation.id == donation_id)
    if only_if_pending:
        stmt = stmt.where(Donation.payment_status == PaymentStatus.PENDING)
    stmt = stmt.values(**values).execution_options(synchronize_session=False)
    try:
        result = await db.execute(stmt)
        await db.commit()
    except Exception:
        await db.rollback()
        raise
    return result.rowcount


def _iso(value) -> Optional[str]:
    return value.isoformat() if value else None


def donation_to_dict(donation: Donation) -> Dict[str, Any]:
    category = donation.category
    user = donation.user
    return {
        "id": donation.id,
        "donorName": donation.donor_name,
        "donorEmail": donation.donor_email,
        "donorPhone": donation.donor_phone,
        "userId": (
            {"id": user.id, "name": user.name, "email": user.email} if user else donation.user_id
        ),
        "item": donation.item,
        "category": (
            {
                "id": category.id,
                "name": category.name,
                "sortDescription": category.sort_description,
                "donationAmount": category.donation_amount,
            }
            if category
            else donation.category_id
        ),
        "quantity": donation.quantity,
        "amount": donation.amount,
        "baseAmount": donation.base_amount,
        "extraAmount": donation.extra_amount,
        "status": donation.status,
        "paymentStatus": donation.payment_status,
        "transactionId": donation.transaction_id,
        "paymentDetails": donation.payment_details,
        "failureReason": donation.failure_reason,
        "errorMessage": donation.error_message,
        "createdAt": _iso(donation.created_at),
        "updatedAt": _iso(donation.updated_at),
    }
