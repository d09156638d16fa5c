# donation_server/models/donation.py
import uuid
from datetime import datetime

from sqlalchemy import Column, DateTime, Float, ForeignKey, Integer, JSON, String, Text
from sqlalchemy.orm import relationship
from donation_server.db.base_class import Base
from donation_server.models.category import Category  # noqa: F401
from donation_server.models.user import User  # noqa: F401


class DonationStatus:
    """Business-review axis. Only written here as a side effect of payment transitions."""

    PENDING = "Pending"
    APPROVED = "Approved"
    REJECTED = "Rejected"


class PaymentStatus:
    PENDING = "Pending"
    PAID = "Paid"
    FAILED = "Failed"
    CANCELLED = "Cancelled"

    TERMINAL = (PAID, FAILED, CANCELLED)


class Donation(Base):
    __tablename__ = "donations"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))

    donor_name = Column(String, nullable=False)
    donor_email = Column(String, nullable=False)
    donor_phone = Column(String, nullable=True)

    # guest donations carry no user
    user_id = Column(String(36), ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True)
    category_id = Column(String(36), ForeignKey("categories.id"), nullable=False, index=True)
    item = Column(String, nullable=True)
    quantity = Column(Integer, default=1, nullable=False)

    # amount = base + extra, captured once at initiation
    amount = Column(Float, nullable=False)
    base_amount = Column(Float, default=0.0, nullable=False)
    extra_amount = Column(Float, default=0.0, nullable=False)

    status = Column(String(16), default=DonationStatus.PENDING, nullable=False)
    payment_status = Column(String(16), default=PaymentStatus.PENDING, nullable=False, index=True)

    transaction_id = Column(String(64), nullable=True, index=True)
    # mihpayid, amount, mode, bank_ref_num, paymentDate, status, error_Message
    payment_details = Column(JSON, nullable=True)
    failure_reason = Column(Text, nullable=True)
    error_message = Column(Text, nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False, index=True)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    category = relationship("Category")
    user = relationship("User", back_populates="donations")
