"""
Run log for background and on-demand sync jobs
"""
from sqlalchemy import Column, Float, Integer, String, Text, DateTime, JSON, Enum

from adtier.models.base import BaseModel
from adtier.models.enums import DateWindow, TaskStatus, enum_values


class TaskLog(BaseModel):
    """One row per sync run; output_data keeps per-brand results"""

    __tablename__ = "task_logs"

    id = Column(Integer, primary_key=True, index=True)
    task_name = Column(String(100), nullable=False, index=True)
    task_type = Column(String(50), nullable=True)
    brand_id = Column(Integer, nullable=True, index=True)  # null for all-brand runs
    date_window = Column(
        Enum(DateWindow, values_callable=enum_values, name="task_date_window"),
        nullable=True,
    )

    status = Column(
        Enum(TaskStatus, values_callable=enum_values, name="task_status"),
        nullable=False,
        default=TaskStatus.RUNNING,
        index=True,
    )
    started_at = Column(DateTime(timezone=True), nullable=False)
    completed_at = Column(DateTime(timezone=True), nullable=True)
    duration_seconds = Column(Float, nullable=True)

    processed_count = Column(Integer, nullable=False, default=0)
    succeeded_count = Column(Integer, nullable=False, default=0)
    failed_count = Column(Integer, nullable=False, default=0)
    message = Column(Text, nullable=True)
    output_data = Column(JSON, nullable=True)

    triggered_by = Column(String(50), nullable=True)  # scheduler | api | cli
