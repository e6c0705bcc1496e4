from __future__ import annotations

from collections.abc import Iterator
from decimal import Decimal
from pathlib import Path
import sys

import pytest
from botocore.exceptions import ClientError
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

ROOT_DIR = Path(__file__).resolve().parents[1]
if str(ROOT_DIR) not in sys.path:
    sys.path.insert(0, str(ROOT_DIR))

from registry.api.deps import get_db_session, get_notification_transport
from registry.api.routes.auth import refresh_token_store
from registry.main import app
from registry.models import Base
from registry.obs import AuditMiddleware
from registry.services.errors import NotificationError
from registry.services.notifications import OutboundEmail
from registry.services.records import RecordStore


class InMemoryS3Client:
    """Simple in-memory S3 stub used by the audit middleware during tests."""

    def __init__(self) -> None:
        self._buckets: dict[str, dict[str, bytes]] = {}

    def head_bucket(self, *, Bucket: str) -> None:
        if Bucket not in self._buckets:
            raise ClientError({"Error": {"Code": "404", "Message": "Not Found"}}, "HeadBucket")

    def create_bucket(self, *, Bucket: str, **_: object) -> None:
        self._buckets.setdefault(Bucket, {})

    def put_object(self, *, Bucket: str, Key: str, Body: bytes | str, **_: object) -> dict[str, str]:
        data = Body.encode("utf-8") if isinstance(Body, str) else Body
        self._buckets.setdefault(Bucket, {})[Key] = data
        return {"ETag": "in-memory"}

    @property
    def buckets(self) -> dict[str, dict[str, bytes]]:
        return self._buckets


class RecordingTransport:
    """Notification transport that keeps messages instead of sending them."""

    def __init__(self, outbox: list[OutboundEmail], *, fail_for: set[str] | None = None) -> None:
        self.outbox = outbox
        self.fail_for = fail_for or set()

    async def send(self, message: OutboundEmail) -> None:
        if message.recipient in self.fail_for:
            raise NotificationError(f"rejected {message.recipient}")
        self.outbox.append(message)


DATABASE_URL = "sqlite+pysqlite://"


engine = create_engine(
    DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(bind=engine, autocommit=False, autoflush=False)


@pytest.fixture(autouse=True)
def audit_s3_client(monkeypatch: pytest.MonkeyPatch) -> Iterator[InMemoryS3Client]:
    client = InMemoryS3Client()

    def _client_factory(*args: object, **kwargs: object) -> InMemoryS3Client:
        return client

    monkeypatch.setattr("registry.obs.audit.boto3.client", _client_factory)
    stack = getattr(app, "middleware_stack", None)
    middleware = getattr(stack, "app", None)
    while middleware is not None and hasattr(middleware, "app"):
        if isinstance(middleware, AuditMiddleware):
            middleware._s3_client = None
            middleware._bucket_ready = False
        middleware = getattr(middleware, "app", None)
    yield client


@pytest.fixture(autouse=True)
def reset_refresh_store() -> Iterator[None]:
    refresh_token_store.reset()
    yield
    refresh_token_store.reset()


@pytest.fixture()
def db_session() -> Iterator[Session]:
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    session = TestingSessionLocal()
    yield session
    session.close()


@pytest.fixture()
def outbox() -> list[OutboundEmail]:
    return []


@pytest.fixture()
def client(
    db_session: Session, audit_s3_client: InMemoryS3Client, outbox: list[OutboundEmail]
) -> Iterator[TestClient]:
    def override_get_db() -> Iterator[Session]:
        try:
            yield db_session
        finally:
            db_session.rollback()

    app.dependency_overrides[get_db_session] = override_get_db
    app.dependency_overrides[get_notification_transport] = lambda: RecordingTransport(outbox)

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.pop(get_db_session, None)
    app.dependency_overrides.pop(get_notification_transport, None)


def _login(client: TestClient, role: str) -> dict[str, str]:
    response = client.post(
        "/api/auth/login",
        json={"email": f"{role.lower()}@example.com", "password": "changeme", "role": role},
    )
    token = response.json()["access_token"]
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture()
def auth_headers(client: TestClient) -> dict[str, str]:
    return _login(client, "ADMIN")


@pytest.fixture()
def compliance_headers(client: TestClient) -> dict[str, str]:
    return _login(client, "COMPLIANCE")


def build_values(**overrides: object) -> dict[str, object]:
    """Column values for a prepared registration, with per-test overrides."""

    values: dict[str, object] = {
        "company": "atos",
        "name": "Jean Dupont",
        "email": "jean.dupont@example.com",
        "phone": "+33612345678",
        "share_count": 100,
        "purchase_price": Decimal("10.50"),
        "sell_price": Decimal("4.25"),
        "loss": Decimal("625.00"),
        "ip_address": "203.0.113.7",
        "country": "FR",
        "remarks": None,
    }
    values.update(overrides)
    return values


@pytest.fixture()
def store(db_session: Session) -> RecordStore:
    return RecordStore(db_session)
