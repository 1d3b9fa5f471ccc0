from cloudinary.exceptions import Error as CloudinaryError
import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.pool import StaticPool
from portfolio_api.core.config import Settings
from portfolio_api.core.context import build_context
from portfolio_api.core.database import create_tables
from portfolio_api.main import create_app
from portfolio_api.models.user import User
from portfolio_api.services.image_host import ImageHost

UPLOADED_URL = "https://res.cloudinary.com/demo/image/upload/v1712345678/profiles/abc123.jpg"


class FakeCloudinary:
    """Stands in for the cloudinary.uploader module"""

    def __init__(self):
        self.uploads = []
        self.destroyed = []
        self.fail_upload = False
        self.fail_destroy = False

    def upload(self, file, **options):
        if self.fail_upload:
            raise CloudinaryError("upload broke")
        self.uploads.append({"content": file.read(), "options": options})
        return {"public_id": "profiles/abc123", "secure_url": UPLOADED_URL}

    def destroy(self, public_id, **options):
        if self.fail_destroy:
            raise CloudinaryError("destroy broke")
        self.destroyed.append(public_id)
        return {"result": "ok"}

    @property
    def calls(self):
        return len(self.uploads) + len(self.destroyed)


def _test_settings() -> Settings:
    return Settings(
        DATABASE_URL="sqlite://",
        SECRET_KEY="test-secret",
        BCRYPT_ROUNDS=4,
        CLOUDINARY_CLOUD_NAME="demo",
        CLOUDINARY_API_KEY="key",
        CLOUDINARY_API_SECRET="secret",
        PROFILE_SWEEP_ENABLED=False,
    )


@pytest.fixture
def cloudinary():
    return FakeCloudinary()


@pytest.fixture
def context(cloudinary):
    settings = _test_settings()
    # One shared in-memory database for every session and thread
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    create_tables(engine)
    image_host = ImageHost.from_settings(settings, uploader=cloudinary)
    ctx = build_context(settings, engine=engine, image_host=image_host)
    yield ctx
    engine.dispose()


@pytest.fixture
def db(context):
    session = context.session_factory()
    yield session
    session.close()


@pytest.fixture
def client(context):
    return TestClient(create_app(context))


def register(client, name="A", email="a@x.com", password="p"):
    return client.post("/add-user", json={"name": name, "email": email, "password": password})


def login_token(client, email="a@x.com", password="p"):
    response = client.post("/login", json={"email": email, "password": password})
    assert response.status_code == 200
    return response.json()["token"]


def auth_headers(token):
    return {"Authorization": f"Bearer {token}"}


def make_admin(db, email):
    user = db.query(User).filter(User.email == email).first()
    user.is_admin = True
    db.commit()
    return user
