from app.models.model_base import Base
from app.models.model_kv_record import KeyValueRecord

__all__ = ['Base', 'KeyValueRecord']
