"""
DNS-related SQLAlchemy models for the DynDNS server
"""

from sqlalchemy import CheckConstraint, Column, Integer, String, UniqueConstraint

# Import Base from database module to ensure all models use the same Base
from ..core.database import Base


class ZoneState(Base):
    """Single-row table holding the zone serial"""
    __tablename__ = "zone_state"

    id = Column(Integer, primary_key=True)
    serial = Column(Integer, nullable=False)

    __table_args__ = (
        CheckConstraint("serial >= 1", name='check_serial_positive'),
    )

    def __repr__(self):
        return f"<ZoneState(serial={self.serial})>"


class HostAddress(Base):
    """One address of a hostname binding; position keeps the list order"""
    __tablename__ = "host_addresses"

    id = Column(Integer, primary_key=True, index=True)
    hostname = Column(String(255), index=True, nullable=False)
    position = Column(Integer, nullable=False)
    address = Column(String(45), nullable=False)

    __table_args__ = (
        UniqueConstraint("hostname", "position", name="uq_host_position"),
        CheckConstraint("length(hostname) >= 1", name='check_hostname_not_empty'),
    )

    def __repr__(self):
        return f"<HostAddress(hostname='{self.hostname}', position={self.position}, address='{self.address}')>"
