from datetime import datetime

from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy import String, Integer, DateTime, func
from .database import Base
from .constants import TBL_SEED_RUNS

class SeedRun(Base):
    """One row per execution of the seeding CLI."""
    __tablename__ = TBL_SEED_RUNS
    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    source_path: Mapped[str] = mapped_column(String, nullable=False)
    total_rows: Mapped[int] = mapped_column(Integer, nullable=False)
    loaded_rows: Mapped[int] = mapped_column(Integer, nullable=False)
    loaded_categories: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    file_hash: Mapped[str] = mapped_column(String, nullable=False)  # SHA256
    created_at: Mapped[datetime] = mapped_column(DateTime, server_default=func.now())
