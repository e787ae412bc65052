import os
import tempfile

# Configure the app before any project module is imported
_TEST_DIR = tempfile.mkdtemp(prefix="asmin-tests-")
os.environ["DATABASE_URL"] = f"sqlite:///{os.path.join(_TEST_DIR, 'test.db')}"
os.environ["UPLOAD_DIR"] = os.path.join(_TEST_DIR, "uploads")
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["SECRET_KEY"] = "test-secret-key"
os.environ["BCRYPT_ROUNDS"] = "4"

import base64
import io
import shutil

import pytest
from PIL import Image
from fastapi.testclient import TestClient

from database import Base, engine, SessionLocal
import models  # noqa: F401
import directory
import file_utils
from auth import register_user
from main import app


@pytest.fixture(autouse=True)
def reset_database():
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    shutil.rmtree(file_utils.UPLOAD_DIR, ignore_errors=True)
    file_utils.ensure_directories()
    yield


@pytest.fixture
def db():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client():
    return TestClient(app)


@pytest.fixture
def master_admin(db):
    return directory.seed_master_admin(db, "asmin@zion.com", "asmin")


@pytest.fixture
def member(db):
    return register_user(db, "a@x.com", "pw1234", "Ann")


@pytest.fixture
def make_image():
    def _make(fmt="PNG", color=(200, 30, 30), data_url=True):
        buffer = io.BytesIO()
        Image.new("RGB", (8, 8), color).save(buffer, format=fmt)
        encoded = base64.b64encode(buffer.getvalue()).decode("ascii")
        if not data_url:
            return encoded
        mime = "image/jpeg" if fmt == "JPEG" else f"image/{fmt.lower()}"
        return f"data:{mime};base64,{encoded}"
    return _make


@pytest.fixture
def login(client):
    """Log in and return Authorization headers."""
    def _login(email, password):
        response = client.post("/api/auth/login", json={"email": email, "password": password})
        assert response.status_code == 200, response.text
        return {"Authorization": f"Bearer {response.json()['access_token']}"}
    return _login


@pytest.fixture
def admin_headers(master_admin, login):
    return login("asmin@zion.com", "asmin")


@pytest.fixture
def branch(db):
    return directory.create_branch(db, "Northern", "Gulu")


@pytest.fixture
def officer(db, branch):
    return directory.create_officer(db, "Olive Officer", "olive@asmin.org", "officer1", branch.region)


@pytest.fixture
def officer_headers(officer, login):
    return login("olive@asmin.org", "officer1")
