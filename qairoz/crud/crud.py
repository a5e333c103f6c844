import logging
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy import func
from sqlalchemy.orm import Session, contains_eager

from qairoz.models.models import College, Student
from qairoz.schemas.colleges import CollegeOut
from qairoz.schemas.students import StudentUploadRequest
from qairoz.utils.timeutils import utcnow, to_iso

logger = logging.getLogger(__name__)

# Keys stamped onto every student by the server; client values are overridden
STAMPED_STUDENT_KEYS = ("collegeName", "collegeEmail", "uploadedAt")

# Student fields that feed the stats breakdowns
BREAKDOWN_FIELDS = ("sport", "course", "year")


# ----------------------------
# Helpers
# ----------------------------

def _breakdown_key(value: Any) -> Optional[str]:
    """
    Normalise a student field into a breakdown key.
    Falsy values (None, "", 0, False) are not counted at all.
    """
    if not value:
        return None
    if isinstance(value, bool):
        return "true"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def student_to_dict(student: Student) -> Dict[str, Any]:
    """Wire representation: client payload plus the server-stamped keys."""
    record = dict(student.data or {})
    record["collegeName"] = student.college.name
    record["collegeEmail"] = student.college_email or ""
    record["uploadedAt"] = to_iso(student.uploaded_at)
    return record


def college_to_dict(college: College) -> Dict[str, Any]:
    return CollegeOut.model_validate(college).model_dump(by_alias=True, mode="json")


# ---------------------------- COLLEGES ----------------------------

def get_college_by_name(db: Session, name: str) -> Optional[College]:
    return db.query(College).filter(College.name == name).first()


def get_colleges(db: Session) -> List[College]:
    """All colleges in registration order."""
    return db.query(College).order_by(College.id).all()


# ---------------------------- STUDENTS ----------------------------

def get_students(db: Session, college_name: Optional[str] = None) -> List[Student]:
    query = (
        db.query(Student)
        .join(College, Student.college_id == College.id)
        .options(contains_eager(Student.college))
    )
    if college_name is not None:
        query = query.filter(College.name == college_name)
    return query.order_by(Student.id).all()


def upsert_college_roster(db: Session, payload: StudentUploadRequest) -> Tuple[College, bool]:
    """
    Register the college if needed and replace its whole roster.

    An existing college keeps its email and registered_at; only the
    student count and last_updated move. Returns (college, created).
    """
    now = utcnow()
    college_email = payload.college_email
    college = get_college_by_name(db, payload.college_name)
    created = college is None

    try:
        if created:
            college = College(
                name=payload.college_name,
                email=college_email,
                student_count=len(payload.students),
                last_updated=now,
                registered_at=now,
            )
            db.add(college)
            db.flush()
        else:
            college.student_count = len(payload.students)
            college.last_updated = now
            db.query(Student).filter(Student.college_id == college.id).delete(synchronize_session=False)

        for item in payload.students:
            data = {k: v for k, v in item.items() if k not in STAMPED_STUDENT_KEYS}
            db.add(Student(
                college_id=college.id,
                college_email=college_email,
                uploaded_at=now,
                data=data,
                **{field: _breakdown_key(data.get(field)) for field in BREAKDOWN_FIELDS},
            ))

        db.commit()
    except Exception:
        db.rollback()
        raise

    db.refresh(college)
    logger.info(
        "Roster uploaded for college=%s students=%d new_college=%s",
        college.name, college.student_count, created,
    )
    return college, created


# ---------------------------- STATS ----------------------------

def _count_by(db: Session, column) -> Dict[str, int]:
    rows = (
        db.query(column, func.count(Student.id))
        .filter(column.isnot(None))
        .group_by(column)
        .all()
    )
    return {key: count for key, count in rows}


def get_stats(db: Session) -> Dict[str, Any]:
    college_rows = (
        db.query(College.name, func.count(Student.id))
        .join(Student, Student.college_id == College.id)
        .group_by(College.name)
        .all()
    )
    return {
        "total_colleges": db.query(func.count(College.id)).scalar() or 0,
        "total_students": db.query(func.count(Student.id)).scalar() or 0,
        "last_updated": utcnow(),
        "sport_breakdown": _count_by(db, Student.sport),
        "course_breakdown": _count_by(db, Student.course),
        "year_breakdown": _count_by(db, Student.year),
        "college_breakdown": {name: count for name, count in college_rows},
    }


# ---------------------------- EXPORT ----------------------------

def build_snapshot(db: Session) -> Dict[str, Any]:
    """Everything the platform holds, in wire format."""
    return {
        "colleges": [college_to_dict(c) for c in get_colleges(db)],
        "students": [student_to_dict(s) for s in get_students(db)],
        "exportedAt": to_iso(utcnow()),
    }
