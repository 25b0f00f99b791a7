from datetime import datetime
from sqlalchemy import String, Text, Enum, DateTime
from sqlalchemy.orm import Mapped, mapped_column
from app.db.base import Base
from app.schemas.deletion import DeletionStatus

class DeletionLog(Base):
    __tablename__ = "deletion_logs"

    confirmation_code: Mapped[str] = mapped_column(String(64), primary_key=True)
    user_id: Mapped[str] = mapped_column(String(128), index=True)
    status: Mapped[DeletionStatus] = mapped_column(Enum(DeletionStatus))
    message: Mapped[str] = mapped_column(Text)
    timestamp: Mapped[datetime] = mapped_column(DateTime(timezone=True))
