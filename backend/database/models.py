# backend/database/models.py
from sqlalchemy import Column, Integer, String, Boolean, DateTime, ForeignKey
from sqlalchemy.orm import declarative_base, relationship
from datetime import datetime

Base = declarative_base()

class Group(Base):
    # Guacamole user group the seats are assigned to
    __tablename__ = "guacamole_groups"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(128), unique=True, index=True, nullable=False)
    disabled = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)

    ips = relationship("IPAddress", back_populates="group")

class IPAddress(Base):
    __tablename__ = "guacamole_user_available_ip"

    id = Column(Integer, primary_key=True, index=True)
    # The unique constraint is the backstop against concurrent allocations
    ip = Column(String(15), unique=True, index=True, nullable=False)
    group_name = Column(String(128), ForeignKey("guacamole_groups.name"), index=True, nullable=False)
    gateway = Column(String(15), nullable=True)
    available_for_user = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    group = relationship("Group", back_populates="ips")
