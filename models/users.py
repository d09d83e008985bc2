from core.database import Base
from sqlalchemy import (Column, Integer, String, Boolean)
from .mixins import CreatedAtMixin

class User(Base, CreatedAtMixin):
    """Back-office account. Only verified, active admins pass the admin gate."""
    __tablename__ = "users"

    #pk
    id = Column(Integer, primary_key=True, index=True)

    email = Column(String, unique=True, nullable=False)
    first_name = Column(String)
    last_name = Column(String)
    hashed_password = Column(String, nullable=False)
    role = Column(String, default="admin", nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)
    is_verified = Column(Boolean, default=False, nullable=False)
