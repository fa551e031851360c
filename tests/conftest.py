# tests/conftest.py
import os
from contextlib import asynccontextmanager

os.environ["JWT_SECRET_KEY"] = "test-secret"
os.environ["MONGODB_USE_TRANSACTIONS"] = "false"
os.environ["PUBLIC_APP_URL"] = "http://refhub.test"

from datetime import datetime, timedelta, timezone  # noqa: E402

import mongomock  # noqa: E402
import pytest  # noqa: E402
from bson import ObjectId  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from mongomock_motor import AsyncMongoMockClient  # noqa: E402
from pymongo.errors import OperationFailure  # noqa: E402

from refhub.db.mongo import MongoManager  # noqa: E402
from refhub.main import create_app  # noqa: E402
from refhub.utils.hashing import hash_password  # noqa: E402
from refhub.utils.jwt_utils import create_jwt_token  # noqa: E402

PASSWORD = "secret123"
DB_NAME = "refhub_test"


# ------------------------------------------------------------------
# App fixtures
# ------------------------------------------------------------------
@pytest.fixture
def mock_client():
    return mongomock.MongoClient()


@pytest.fixture
def mongo(mock_client):
    return MongoManager(
        db_name=DB_NAME,
        client=AsyncMongoMockClient(mock_mongo_client=mock_client),
        use_transactions=False,
    )


@pytest.fixture
def db(mock_client):
    """Synchronous handle on the same in-memory database, for seeding and asserts."""
    return mock_client[DB_NAME]


@pytest.fixture
def client(mongo):
    app = create_app(mongo)
    with TestClient(app) as c:
        yield c


@pytest.fixture
def conflict_next_transaction(mongo, monkeypatch):
    """
    Arm the app so its next transaction loses a write conflict after the body
    ran, as if a concurrent request had committed the same writes first.
    Returns the list of runs so tests can see the retry.
    """
    def _arm() -> list:
        runs = []

        @asynccontextmanager
        async def transaction():
            runs.append(len(runs) + 1)
            yield None
            if len(runs) == 1:
                raise OperationFailure(
                    "WriteConflict", code=112, details={"errorLabels": ["TransientTransactionError"]}
                )

        monkeypatch.setattr(mongo, "transaction", transaction)
        return runs

    return _arm


def auth_header(user: dict) -> dict:
    token = create_jwt_token({"user_id": str(user["_id"]), "role": user["role"]})
    return {"Authorization": f"Bearer {token}"}


# ------------------------------------------------------------------
# Seed helpers
# ------------------------------------------------------------------
def insert_user(db, **fields) -> dict:
    doc = {
        "password": hash_password(PASSWORD),
        "created_at": datetime.now(timezone.utc),
        "updated_at": datetime.now(timezone.utc),
        **fields,
    }
    doc["_id"] = db.users.insert_one(doc).inserted_id
    return doc


@pytest.fixture
def business(db):
    return insert_user(
        db,
        email="owner@acmecoffee.com",
        name="Olive Owner",
        role="business",
        business_name="Acme Coffee",
        website="https://acme.test/redeem",
        referral_code="ACM-CF001",
    )


@pytest.fixture
def other_business(db):
    return insert_user(db, email="boss@globex.com", name="Gus", role="business", business_name="Globex")


@pytest.fixture
def referrer(db, business):
    return insert_user(
        db,
        email="rita@acmecoffee.com",
        name="Rita Referrer",
        role="referrer",
        company="Acme Coffee",
        business_id=business["_id"],
        referral_code="RIT-AB123",
        earnings=0,
    )


@pytest.fixture
def customer(db):
    return insert_user(db, email="carla@example.com", name="Carla", role="customer")


@pytest.fixture
def friend(db):
    return insert_user(db, email="frank@example.com", name="Frank", role="customer")


@pytest.fixture
def make_campaign(db):
    def _make(business: dict, **overrides) -> dict:
        now = datetime.now(timezone.utc)
        doc = {
            "business_id": business["_id"],
            "company_name": business.get("business_name"),
            "name": "Summer Promo",
            "description": "Bring a friend",
            "start_date": now - timedelta(days=1),
            "is_active": True,
            "reward_type": "discount",
            "reward_amount": 10,
            "referrer_reward_type": "cash",
            "referrer_reward_amount": 5,
            "shares": 0,
            "clicks": 0,
            "conversions": 0,
            "redemptions": 0,
            "created_at": now,
            "updated_at": now,
            **overrides,
        }
        doc["_id"] = db.campaigns.insert_one(doc).inserted_id
        return doc

    return _make


@pytest.fixture
def campaign(make_campaign, business):
    return make_campaign(business)


@pytest.fixture
def make_reward(db):
    def _make(user: dict, campaign: dict, **overrides) -> dict:
        doc = {
            "user_id": user["_id"],
            "campaign_id": campaign["_id"],
            "business_id": campaign["business_id"],
            "type": "discount",
            "amount": 10,
            "status": "available",
            "source": "conversion",
            "code": "ABCD2345",
            "date_earned": datetime.now(timezone.utc),
            **overrides,
        }
        doc["_id"] = db.rewards.insert_one(doc).inserted_id
        return doc

    return _make


def new_id() -> str:
    return str(ObjectId())
