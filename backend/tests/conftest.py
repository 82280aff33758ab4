import os
import tempfile

# Settings are read at import time, so configure the environment before importing the app
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["LOCAL_STORAGE_DIR"] = tempfile.mkdtemp(prefix="invoice-storage-")
os.environ["BACKGROUND_JOBS_ENABLED"] = "false"
os.environ["AUTO_CREATE_VENDORS"] = "false"

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy import create_engine  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from app.database import Base, get_db  # noqa: E402
import app.models  # noqa: E402,F401
from app.schemas.invoice import ExtractedInvoice  # noqa: E402
from app.schemas.settings import IntegrationConfig  # noqa: E402
from app.services.exceptions import AuthExpiredError, TokenRefreshError  # noqa: E402
from app.services.upload_queue import UploadQueue  # noqa: E402


class FakeZohoDirectory:
    """In-memory stand-in for ZohoBooksClient"""

    def __init__(self, contacts=None, accounts=None):
        self.contacts = list(contacts or [])
        self.accounts = list(accounts or [])
        self.searches = []
        self.created_vendors = []
        self.bills = []
        self.attachments = []
        self.bill_failures = []  # Exceptions raised by the next create_bill calls, in order
        self.search_failures = []
        self.attach_error = None
        self._next_id = 1000

    def _new_id(self) -> str:
        self._next_id += 1
        return str(self._next_id)

    async def search_contacts(self, params):
        self.searches.append(dict(params))
        if self.search_failures:
            raise self.search_failures.pop(0)
        if "contact_name" in params:
            return [c for c in self.contacts if c["contact_name"] == params["contact_name"]]
        term = params.get("contact_name_contains", "").lower()
        return [c for c in self.contacts if term in c["contact_name"].lower()]

    async def create_vendor(self, details):
        contact = {"contact_id": self._new_id(), "contact_name": details.name, "contact_type": "vendor"}
        self.created_vendors.append(details)
        self.contacts.append(contact)
        return contact

    async def create_bill(self, payload):
        if self.bill_failures:
            raise self.bill_failures.pop(0)
        bill = {"bill_id": self._new_id(), **payload}
        self.bills.append(payload)
        return bill

    async def attach_file(self, bill_id, filename, content):
        if self.attach_error:
            raise self.attach_error
        self.attachments.append((bill_id, filename, content))
        return {"code": 0}

    async def list_expense_accounts(self):
        return list(self.accounts)


class FakeTokenService:
    def __init__(self, fail: bool = False):
        self.fail = fail
        self.refreshes = 0

    async def refresh(self):
        self.refreshes += 1
        if self.fail:
            raise TokenRefreshError("Cannot refresh token: Missing refresh token or client credentials")
        return "new-token"


class FakeStorage:
    def __init__(self):
        self.files = {}

    def upload_file(self, file_content, filename, folder="uploads"):
        key = f"{folder}/{filename}"
        self.files[key] = file_content
        return key

    def download_file(self, storage_key):
        if storage_key not in self.files:
            raise FileNotFoundError(f"File not found: {storage_key}")
        return self.files[storage_key]

    def list_files(self, folder):
        prefix = f"{folder}/"
        return sorted(k for k in self.files if k.startswith(prefix) and k.lower().endswith(".pdf"))

    def move_file(self, storage_key, dest_folder):
        new_key = f"{dest_folder}/{storage_key.rsplit('/', 1)[-1]}"
        self.files[new_key] = self.files.pop(storage_key)
        return new_key


class FakeExtractor:
    def __init__(self, invoice=None, error=None):
        self.invoice = invoice
        self.error = error
        self.calls = []

    async def extract(self, file_content, filename):
        self.calls.append(filename)
        if self.error:
            raise self.error
        return self.invoice.model_copy(deep=True)


def make_invoice(**overrides) -> ExtractedInvoice:
    data = {
        "vendorName": "Acme Supplies",
        "invoiceNumber": "INV-001",
        "invoiceDate": "2025-03-01",
        "dueDate": "2025-03-31",
        "currency": "CAD",
        "subtotal": 100.0,
        "tax": 13.0,
        "total": 113.0,
        "lineItems": [
            {"description": "Shipping charge", "quantity": 1, "rate": 100.0, "amount": 100.0},
        ],
    }
    data.update(overrides)
    return ExtractedInvoice.from_extraction(data)


def auth_expired() -> AuthExpiredError:
    return AuthExpiredError("Access token expired or invalid. Please update your token in Settings.", status_code=401)


@pytest.fixture
def db_session():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    TestingSession = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    session = TestingSession()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def config():
    return IntegrationConfig(
        organization_id="org-1",
        access_token="token-1",
        refresh_token="refresh-1",
        client_id="client-1",
        client_secret="secret-1",
    )


@pytest.fixture
def zoho():
    return FakeZohoDirectory(contacts=[
        {"contact_id": "v-1", "contact_name": "ACME SUPPLIES", "contact_type": "vendor"},
    ])


@pytest.fixture
def token_service():
    return FakeTokenService()


@pytest.fixture
def storage():
    return FakeStorage()


@pytest.fixture
def extractor():
    return FakeExtractor(invoice=make_invoice())


@pytest.fixture
def queue():
    return UploadQueue()


@pytest.fixture
def client(db_session, zoho, token_service, storage, extractor, queue):
    from app.main import app
    from app import dependencies

    def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[dependencies.get_zoho_client] = lambda: zoho
    app.dependency_overrides[dependencies.get_token_service] = lambda: token_service
    app.dependency_overrides[dependencies.get_storage] = lambda: storage
    app.dependency_overrides[dependencies.get_extractor] = lambda: extractor
    app.dependency_overrides[dependencies.get_queue] = lambda: queue
    try:
        with TestClient(app) as test_client:
            yield test_client
    finally:
        app.dependency_overrides.clear()


