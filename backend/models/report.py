"""
Report model - one row per uploaded workbook
"""
from sqlalchemy import Column, String, DateTime, Integer, func
from sqlalchemy.orm import relationship
from datetime import datetime
import uuid
from database import Base


class Report(Base):
    __tablename__ = "reports"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    file_name = Column(String(255), nullable=False)

    # Unique issues found in the upload after row-level dedup
    total_issues = Column(Integer, nullable=False, default=0)

    uploaded_at = Column(DateTime, default=datetime.utcnow, server_default=func.now())

    # Relationships
    issues = relationship("Issue", back_populates="report")

    def __repr__(self):
        return f"<Report {self.file_name} ({self.total_issues} issues)>"
