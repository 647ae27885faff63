from sqlalchemy import Column, String, DateTime, JSON
from sqlalchemy.sql import func
from protein_dashboard.db.base import Base

class SavedProteinSet(Base):
    __tablename__ = "saved_proteins"

    access_code = Column(String, primary_key=True)
    proteins = Column(JSON, nullable=False, default=list)  # list of SavedProteinEntry dicts
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())
