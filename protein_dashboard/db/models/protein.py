from sqlalchemy import Column, Integer, String, Text
from protein_dashboard.db.base import Base

class Protein(Base):
    __tablename__ = "proteins"

    id = Column(Integer, primary_key=True, index=True)
    accession = Column(String, index=True)
    name = Column(Text)
    organism_name = Column("source_organism_full_name", Text)
    domain_header = Column("entries_header", Text)  # e.g. PF00704(34...320,355...427)
    sequence = Column(Text)
    length = Column(Integer)
