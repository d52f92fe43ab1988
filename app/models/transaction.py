# app/models/transaction.py
import enum
import uuid
from sqlalchemy import Column, NUMERIC, TIMESTAMP, ForeignKey, Enum, CHAR, func
from app.core.database import Base

class TransactionStatusEnum(str, enum.Enum):
    pending = "pending"
    completed = "completed"
    failed = "failed"

class PaymentMethodEnum(str, enum.Enum):
    credit_card = "credit_card"
    paypal = "paypal"
    bank_transfer = "bank_transfer"

class Transaction(Base):
    __tablename__ = "transactions"

    transaction_id = Column(CHAR(36), primary_key=True, default=lambda: str(uuid.uuid4()))

    client_id = Column(CHAR(36), ForeignKey("users.user_id"), nullable=False, index=True)
    freelancer_id = Column(CHAR(36), ForeignKey("users.user_id"), nullable=False, index=True)
    project_id = Column(CHAR(36), ForeignKey("projects.project_id", ondelete="CASCADE"), nullable=False, index=True)

    amount = Column(NUMERIC(12, 2), nullable=False)
    payment_method = Column(
        Enum(PaymentMethodEnum, values_callable=lambda obj: [e.value for e in obj]),
        nullable=True,
    )
    # pending -> completed 這條邊會觸發結算 (TransactionService)
    status = Column(
        Enum(TransactionStatusEnum, values_callable=lambda obj: [e.value for e in obj]),
        nullable=False,
        default=TransactionStatusEnum.pending,
    )

    created_at = Column(TIMESTAMP, server_default=func.now())
    updated_at = Column(TIMESTAMP, server_default=func.now(), onupdate=func.now())
