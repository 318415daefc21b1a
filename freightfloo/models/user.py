from sqlalchemy import Column, Integer, String, Boolean, DateTime, JSON
from sqlalchemy.sql import func

from .bootstrap_db import Base
from .enums import Role, UserType


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String, unique=True, index=True, nullable=False)
    password_hash = Column(String, nullable=True)
    name = Column(String, nullable=False)
    role = Column(String(20), nullable=False, default=Role.SHIPPER.value)  # SHIPPER, CARRIER, ADMIN, BOTH
    user_type = Column(String(20), nullable=False, default=UserType.INDIVIDUAL.value)
    is_active = Column(Boolean, nullable=False, default=True)

    # Company profile (shippers registering as a company, carriers)
    company_name = Column(String, nullable=True)
    company_website = Column(String, nullable=True)
    company_phone = Column(String, nullable=True)
    company_address = Column(String, nullable=True)
    company_city = Column(String, nullable=True)
    company_state = Column(String, nullable=True)
    company_zip_code = Column(String, nullable=True)
    company_country = Column(String, nullable=True, default="US")

    # Carrier authority
    dot_number = Column(String, nullable=True, index=True)
    mc_number = Column(String, nullable=True, index=True)
    equipment_types = Column(JSON, nullable=False, default=list)  # ids from services.equipment

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())
