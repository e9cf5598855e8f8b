from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, Text
from wims.core.clock import utcnow
from wims.core.database import Base


class AuditLog(Base):
    __tablename__ = "audit_logs"

    id = Column(Integer, primary_key=True, index=True)

    # who/where
    user_id = Column(Integer, ForeignKey("users.id"), nullable=True, index=True)
    ip_address = Column(String(50), nullable=True)

    # what happened
    action = Column(String(255), nullable=False)  # e.g. "CREATE_PRODUCT", "RECEIVE_ORDER"
    details = Column(Text, nullable=True)

    timestamp = Column(DateTime, default=utcnow, nullable=False, index=True)
