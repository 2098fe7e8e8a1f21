import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from app.database import Base, get_db
from app.main import app
from app.models.user import User

TEST_DB_URL = "sqlite:///./test_curriculum.db"

engine = create_engine(TEST_DB_URL, connect_args={"check_same_thread": False})
TestingSession = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def override_get_db():
    db = TestingSession()
    try:
        yield db
    finally:
        db.close()


app.dependency_overrides[get_db] = override_get_db


@pytest.fixture(autouse=True)
def setup_db():
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def db():
    db = TestingSession()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture
def client():
    return TestClient(app)


@pytest.fixture
def seed_users(db):
    users = {
        "admin": User(emp_id="admin001", name="Admin", role="admin", department_code="ADM"),
        "author": User(emp_id="fac001", name="Author", role="faculty", department_code="CSE"),
        "coauthor": User(emp_id="fac002", name="Co-author", role="faculty", department_code="CSE"),
        "outsider": User(emp_id="fac003", name="Outsider", role="faculty", department_code="MEC"),
        "hod": User(emp_id="hod001", name="CSE Head", role="faculty", department_code="CSE", is_head_of_department=True),
        "other_hod": User(emp_id="hod002", name="MEC Head", role="faculty", department_code="MEC", is_head_of_department=True),
        "office": User(emp_id="office001", name="Registrar", role="office"),
        "student": User(emp_id="stu001", name="Student", role="student", department_code="CSE"),
        "other_student": User(emp_id="stu002", name="Other Student", role="student", department_code="CSE"),
    }
    for u in users.values():
        db.add(u)
    db.commit()
    for u in users.values():
        db.refresh(u)
    return users


def get_token(client, emp_id: str) -> str:
    resp = client.post("/api/auth/login", json={"emp_id": emp_id})
    assert resp.status_code == 200, resp.text
    return resp.json()["access_token"]


def auth_headers(client, emp_id: str) -> dict:
    return {"Authorization": f"Bearer {get_token(client, emp_id)}"}


def create_course(client, headers, code="CS101", **overrides) -> dict:
    payload = {"code": code, "name": f"Course {code}", "credits": 3, "semester": 1}
    payload.update(overrides)
    resp = client.post("/api/courses", json=payload, headers=headers)
    assert resp.status_code == 201, resp.text
    return resp.json()


def run_action(client, headers, kind: str, entity_id: int, action: str, **body) -> dict:
    resp = client.post(f"/api/{kind}/{entity_id}/{action}", json=body or None, headers=headers)
    assert resp.status_code == 200, resp.text
    return resp.json()


def activate_course(client, code="CS101") -> dict:
    """Create a course and drive it to active through the full approval flow."""
    author = auth_headers(client, "fac001")
    hod = auth_headers(client, "hod001")
    course = create_course(client, author, code=code)
    run_action(client, author, "courses", course["course_id"], "submit")
    run_action(client, hod, "courses", course["course_id"], "approve")
    return run_action(client, author, "courses", course["course_id"], "publish")
