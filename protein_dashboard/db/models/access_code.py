from sqlalchemy import Column, String
from protein_dashboard.db.base import Base

class AccessCode(Base):
    __tablename__ = "codes"

    code = Column(String, primary_key=True)
