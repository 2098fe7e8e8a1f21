"""Create the schema and seed demo users, a degree and active courses."""
import sys
import os
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from datetime import datetime
from app.database import SessionLocal, engine, Base
import app.models  # noqa: F401

from app.models.user import User
from app.models.course import Course
from app.models.degree import Degree


def seed():
    Base.metadata.create_all(bind=engine)
    db = SessionLocal()
    try:
        if db.query(User).count() > 0:
            print("Database already seeded. Skipping.")
            return

        users = [
            User(emp_id="admin001", name="System Admin", role="admin", department_code="ADM", email="admin@example.edu"),
            User(emp_id="hod001", name="Priya Raman", role="faculty", department_code="CSE",
                 is_head_of_department=True, email="hod.cse@example.edu"),
            User(emp_id="fac001", name="Arjun Mehta", role="faculty", department_code="CSE", email="arjun@example.edu"),
            User(emp_id="fac002", name="Lena Ortiz", role="faculty", department_code="CSE", email="lena@example.edu"),
            User(emp_id="office001", name="Registrar Office", role="office", email="registrar@example.edu"),
            User(emp_id="stu001", name="Sam Lee", role="student", department_code="CSE", email="sam@example.edu"),
        ]
        db.add_all(users)
        db.flush()
        hod, author = users[1], users[2]
        approved_at = datetime.utcnow()

        db.add(Degree(
            code="BTCSE", name="B.Tech Computer Science", duration_years=4,
            department_code="CSE", version=1, status="active", is_latest_version=True,
            created_by=author.user_id, approved_by=hod.user_id, approved_at=approved_at,
        ))

        courses = [
            ("CS101", "Programming Fundamentals", 4, 1),
            ("CS102", "Discrete Mathematics", 3, 1),
            ("CS201", "Data Structures", 4, 3),
        ]
        for code, name, credits, semester in courses:
            db.add(Course(
                code=code, name=name, credits=credits, semester=semester, degree_code="BTCSE",
                department_code="CSE", version=1, status="active", is_latest_version=True,
                prerequisites=[], created_by=author.user_id, approved_by=hod.user_id, approved_at=approved_at,
            ))

        db.commit()
        print("Seeded users, 1 degree and %d courses." % len(courses))
    finally:
        db.close()


if __name__ == "__main__":
    seed()
