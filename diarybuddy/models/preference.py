from sqlalchemy import String, Text
from sqlalchemy.orm import Mapped, mapped_column

from diarybuddy.db.base import Base


class Preference(Base):
    """Free-form key/value fact about the user. Last write wins."""

    __tablename__ = "preferences"

    key: Mapped[str] = mapped_column(String(255), primary_key=True)
    value: Mapped[str] = mapped_column(Text, nullable=False)
