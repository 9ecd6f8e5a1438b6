"""Doctor and specialty model definitions.

Both tables are maintained by clinic administration; the booking engine only
reads them to enrich appointment responses.
"""

from sqlalchemy import Boolean, Column, ForeignKey, Integer, Numeric, String
from sqlalchemy.orm import relationship

from clinic_booking.database import Base


class Specialty(Base):
    """Represents a medical specialty."""
    __tablename__ = "specialties"

    id = Column(Integer, primary_key=True)
    name = Column(String, nullable=False)
    description = Column(String)
    consultation_minutes = Column(Integer)
    base_price = Column(Numeric(10, 2))
    is_active = Column(Boolean, default=True)


class Doctor(Base):
    """Represents a doctor patients can book with."""
    __tablename__ = "doctors"

    id = Column(Integer, primary_key=True)
    first_name = Column(String, nullable=False)
    last_name = Column(String, nullable=False)
    email = Column(String, unique=True)
    phone = Column(String)
    specialty_id = Column(Integer, ForeignKey("specialties.id"))
    consultation_minutes = Column(Integer)
    is_active = Column(Boolean, default=True)

    specialty = relationship(Specialty, lazy="joined")

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()
