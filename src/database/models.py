import uuid
from sqlalchemy import Column, String, Text, DateTime, func, JSON
from sqlalchemy.dialects.postgresql import UUID
from .database import Base

class WorkflowRun(Base):
    __tablename__ = "workflow_runs"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    workflow_id = Column(String, nullable=True, index=True)
    workflow_name = Column(String, nullable=False)
    prompt = Column(Text, nullable=False)
    status = Column(String, nullable=False)
    output = Column(JSON, nullable=True)
    error = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    def __repr__(self):
        return f"<WorkflowRun(id={self.id}, workflow_id='{self.workflow_id}', status='{self.status}')>"
