from sqlalchemy import Column, String, LargeBinary, DateTime, func
from app.models.model_base import Base


class KeyValueRecord(Base):
    __tablename__ = "kv_store"

    key = Column(String(255), primary_key=True)
    payload = Column(LargeBinary, nullable=False)
    created_at = Column(DateTime, default=func.now())
    updated_at = Column(DateTime, default=func.now(), onupdate=func.now())
