from unittest.mock import MagicMock

import pytest
from fastapi.testclient import TestClient

from qairoz import config
from qairoz.database.database import Base, engine
from qairoz.main import app
from qairoz.utils.otp import OTPStore, get_otp_store
from qairoz.utils.storage import S3Storage, get_storage

EMAIL_SETTINGS = (
    "EMAILJS_SERVICE_ID",
    "EMAILJS_TEMPLATE_ID",
    "EMAILJS_PUBLIC_KEY",
    "EMAILJS_PRIVATE_KEY",
    "RESEND_API_KEY",
    "RESEND_FROM_EMAIL",
    "GMAIL_USER",
    "GMAIL_APP_PASSWORD",
    "SENDGRID_API_KEY",
    "SENDGRID_FROM_EMAIL",
)


class FakeClock:
    """Manually advanced replacement for time.time."""

    def __init__(self, start: float = 1_700_000_000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture(autouse=True)
def reset_database():
    """Every test starts with empty colleges and students tables."""
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield


@pytest.fixture(autouse=True)
def no_email_providers(monkeypatch):
    """
    Strip credentials from every email provider so nothing leaves the process.
    Tests opt back in by setting the config attributes they need.
    """
    for name in EMAIL_SETTINGS:
        monkeypatch.setattr(config, name, None)
    monkeypatch.setattr(config, "SENDGRID_SANDBOX", False)
    monkeypatch.setattr(config, "EMAIL_PROVIDERS", ["emailjs", "resend", "gmail", "sendgrid"])


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def otp_store(clock):
    return OTPStore(expire_seconds=300, max_attempts=3, length=6, clock=clock)


@pytest.fixture
def s3_client():
    client = MagicMock()
    client.generate_presigned_url.side_effect = (
        lambda op, Params, ExpiresIn: f"https://s3.example/{Params['Bucket']}/{Params['Key']}?sig=1"
    )
    return client


@pytest.fixture
def s3_storage(s3_client):
    return S3Storage(bucket="qairoz-test", prefix="backups/", region="eu-north-1", client=s3_client)


@pytest.fixture
def client(otp_store, s3_storage):
    """
    TestClient with the OTP store and S3 storage swapped for test doubles.
    """
    app.dependency_overrides[get_otp_store] = lambda: otp_store
    app.dependency_overrides[get_storage] = lambda: s3_storage
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def upload(client):
    """POST a roster and return the response."""
    def _upload(college_name, students, email=None):
        body = {"collegeName": college_name, "students": students}
        if email is not None:
            body["collegeInfo"] = {"email": email}
        return client.post("/api/students", json=body)
    return _upload
