from sqlalchemy import Column, String, Text, ForeignKey

from app.models import BaseModel, NoteType, enum_column


class PatientNote(BaseModel):
    """Timestamped entry on a patient's timeline"""
    __tablename__ = "patient_notes"

    patient_id = Column(String(36), ForeignKey("patients.id", ondelete="CASCADE"), nullable=False, index=True)
    content = Column(Text, nullable=False)
    type = Column(enum_column(NoteType), nullable=False, default=NoteType.NOTE)
    title = Column(String(255), nullable=True)
    amount = Column(String(20), nullable=True)

    def __repr__(self):
        return f"<PatientNote(id={self.id}, patient_id={self.patient_id}, type='{self.type}')>"
