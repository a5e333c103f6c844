from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, JSON
from sqlalchemy.orm import relationship

from qairoz.database.database import Base


# ---------- COLLEGE ----------
class College(Base):
    __tablename__ = "colleges"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, unique=True, index=True, nullable=False)
    email = Column(String, nullable=False, default="")
    student_count = Column(Integer, nullable=False, default=0)
    last_updated = Column(DateTime(timezone=True), nullable=False)
    registered_at = Column(DateTime(timezone=True), nullable=False)

    students = relationship(
        "Student",
        back_populates="college",
        cascade="all, delete-orphan",
        order_by="Student.id",
    )


# ---------- STUDENT ----------
class Student(Base):
    __tablename__ = "students"

    id = Column(Integer, primary_key=True, index=True)
    college_id = Column(Integer, ForeignKey("colleges.id", ondelete="CASCADE"), nullable=False, index=True)
    college_email = Column(String, nullable=False, default="")
    uploaded_at = Column(DateTime(timezone=True), nullable=False)

    # Breakdown keys, extracted from the payload at upload time
    sport = Column(String, nullable=True, index=True)
    course = Column(String, nullable=True, index=True)
    year = Column(String, nullable=True, index=True)

    # Whatever else the client sent for this student
    data = Column(JSON, nullable=False, default=dict)

    college = relationship("College", back_populates="students")
