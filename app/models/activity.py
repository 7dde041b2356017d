from sqlalchemy import Column, String, Text, ForeignKey
from sqlalchemy.orm import relationship

from app.models import BaseModel


class ActivityLog(BaseModel):
    __tablename__ = "activity_log"

    user_id = Column(String(36), ForeignKey("users.id"), nullable=False, index=True)
    type = Column(String(64), nullable=False, index=True)
    description = Column(Text, nullable=False)
    entity_id = Column(String(36), nullable=True)
    entity_type = Column(String(32), nullable=True)

    user = relationship("User", lazy="selectin")
