# app/models/proposal.py
import enum
import uuid
from sqlalchemy import Column, Text, INT, NUMERIC, ForeignKey, Enum, TIMESTAMP, CHAR, func
from sqlalchemy.orm import relationship
from app.core.database import Base

class ProposalStatusEnum(str, enum.Enum):
    pending = "pending"
    accepted = "accepted"
    rejected = "rejected"

class Proposal(Base):
    __tablename__ = "proposals"

    proposal_id = Column(CHAR(36), primary_key=True, default=lambda: str(uuid.uuid4()))

    project_id = Column(CHAR(36), ForeignKey("projects.project_id", ondelete="CASCADE"), nullable=False, index=True)
    freelancer_id = Column(CHAR(36), ForeignKey("users.user_id", ondelete="CASCADE"), nullable=False, index=True)

    proposal_text = Column(Text, nullable=False)
    bid_amount = Column(NUMERIC(12, 2), nullable=False)
    estimated_duration = Column(INT) # 預估天數

    status = Column(
        Enum(ProposalStatusEnum, values_callable=lambda obj: [e.value for e in obj]),
        nullable=False,
        default=ProposalStatusEnum.pending,
    )

    created_at = Column(TIMESTAMP, server_default=func.now())
    updated_at = Column(TIMESTAMP, server_default=func.now(), onupdate=func.now())

    project = relationship("Project", back_populates="proposals")
    freelancer = relationship("User", back_populates="proposals")
