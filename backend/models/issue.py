"""
Issue model - one defect of one type against one part, tied to one upload
"""
from sqlalchemy import Column, String, DateTime, Boolean, ForeignKey, Index, func
from sqlalchemy.orm import relationship
from sqlalchemy.sql import expression
from datetime import datetime
import uuid
from database import Base


class Issue(Base):
    __tablename__ = "issues"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    report_id = Column(String(36), ForeignKey("reports.id"), nullable=False)

    # Part Identity (part_number, owner); owner NULL means "no owner"
    part_number = Column(String(255), nullable=False)
    owner = Column(String(255), nullable=True)

    # Sheet name of the uploaded workbook
    issue_type = Column(String(255), nullable=False)

    # Correction state, replicated across every row of a Part Identity
    is_corrected = Column(Boolean, nullable=False, default=False, server_default=expression.false())
    corrected_at = Column(DateTime, nullable=True)

    # Timestamps
    created_at = Column(DateTime, default=datetime.utcnow, server_default=func.now())

    # Relationships
    report = relationship("Report", back_populates="issues")

    __table_args__ = (
        Index("ix_issues_part_identity", "part_number", "owner"),
    )

    def __repr__(self):
        return f"<Issue {self.part_number}/{self.owner}: {self.issue_type}>"
