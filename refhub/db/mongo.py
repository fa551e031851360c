# refhub/db/mongo.py
import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Awaitable, Callable, Optional, TypeVar

from fastapi import HTTPException, Request
from motor.motor_asyncio import AsyncIOMotorClient
from pymongo.errors import OperationFailure

from ..config import MONGODB_DB_NAME, MONGODB_URL, MONGODB_USE_TRANSACTIONS, TRANSACTION_ATTEMPTS

T = TypeVar("T")


def is_transient_error(exc: Exception) -> bool:
    """True for errors the server labels safe to retry as a whole transaction (WriteConflict and friends)."""
    return isinstance(exc, OperationFailure) and exc.has_error_label("TransientTransactionError")


class MongoManager:
    """
    Owns the Mongo client for the lifetime of the app.

    Built once at startup (see ``refhub.main.create_app``), stored on
    ``app.state.mongo`` and handed to controllers through ``get_db``.
    A ready-made client can be passed in (tests use an in-memory one).
    """

    def __init__(
        self,
        url: str = MONGODB_URL,
        db_name: str = MONGODB_DB_NAME,
        client: Optional[Any] = None,
        use_transactions: bool = MONGODB_USE_TRANSACTIONS,
    ):
        self.url = url
        self.db_name = db_name
        self.client = client
        self.use_transactions = use_transactions
        self.database = None

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------
    async def connect(self) -> None:
        if self.client is None:
            self.client = AsyncIOMotorClient(self.url)
        self.database = self.client[self.db_name]
        logging.info("Mongo connected (db=%s, transactions=%s)", self.db_name, self.use_transactions)

    async def close(self) -> None:
        if self.client is not None:
            self.client.close()
            logging.info("Mongo connection closed")
        self.client = None
        self.database = None

    # ------------------------------------------------------------------
    # Collections
    # ------------------------------------------------------------------
    @property
    def users(self):
        return self.database["users"]

    @property
    def campaigns(self):
        return self.database["campaigns"]

    @property
    def referrer_campaigns(self):
        # referrer <-> campaign "selected" join records
        return self.database["referrer_campaigns"]

    @property
    def referral_links(self):
        return self.database["referral_links"]

    @property
    def conversions(self):
        return self.database["conversions"]

    @property
    def rewards(self):
        return self.database["rewards"]

    @property
    def customer_shares(self):
        return self.database["customer_shares"]

    @property
    def business_customers(self):
        # a business's own contact list, not user accounts
        return self.database["business_customers"]

    @property
    def referral_leads(self):
        return self.database["referral_leads"]

    @property
    def daily_stats(self):
        return self.database["daily_stats"]

    @property
    def campaign_tasks(self):
        return self.database["campaign_tasks"]

    @property
    def task_completions(self):
        return self.database["task_completions"]

    # ------------------------------------------------------------------
    # Transactions
    # ------------------------------------------------------------------
    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[Optional[Any]]:
        """
        Yield a session bound to a multi-document transaction.

        When transactions are disabled (standalone server) this yields None and
        every write runs on its own; callers pass the value through as
        ``session=`` either way.
        """
        if not self.use_transactions:
            yield None
            return

        async with await self.client.start_session() as session:
            async with session.start_transaction():
                yield session

    async def run_in_transaction(self, work: Callable[[Optional[Any]], Awaitable[T]]) -> T:
        """
        Run ``await work(session)`` inside ``transaction()``.

        A transaction that loses a write conflict to a concurrent one is
        aborted by the server and ``work`` runs again from the start, so it
        must re-read anything it depends on. Conflicts that outlast
        ``TRANSACTION_ATTEMPTS`` become a 409.
        """
        for attempt in range(1, TRANSACTION_ATTEMPTS + 1):
            try:
                async with self.transaction() as session:
                    return await work(session)
            except OperationFailure as exc:
                if not is_transient_error(exc):
                    raise
                logging.warning("Transaction conflict (attempt %d/%d): %s", attempt, TRANSACTION_ATTEMPTS, exc)

        raise HTTPException(status_code=409, detail="The request conflicted with a concurrent update; try again")

    # ------------------------------------------------------------------
    # Indexes
    # ------------------------------------------------------------------
    async def init_db_indexes(self) -> None:
        # Users: unique email
        await self.users.create_index("email", unique=True)
        await self.users.create_index([("role", 1), ("business_name", 1)])

        # Campaigns
        await self.campaigns.create_index([("business_id", 1), ("is_active", 1)])
        await self.campaigns.create_index("company_name")

        # One selection per (referrer, campaign)
        await self.referrer_campaigns.create_index(
            [("referrer_id", 1), ("campaign_id", 1)],
            unique=True,
            name="referrer_campaign_unique",
        )

        # Referral links: codes are never reused
        await self.referral_links.create_index("code", unique=True)
        await self.referral_links.create_index("campaign_id")

        # At most one conversion per (link, customer)
        await self.conversions.create_index(
            [("referral_link_id", 1), ("customer_id", 1)],
            unique=True,
            name="link_customer_unique",
        )
        await self.conversions.create_index([("customer_id", 1), ("created_at", -1)])

        # A customer shares a campaign once
        await self.customer_shares.create_index(
            [("customer_id", 1), ("campaign_id", 1)],
            unique=True,
            name="customer_campaign_unique",
        )

        # Rewards
        await self.rewards.create_index([("user_id", 1), ("status", 1)])
        await self.rewards.create_index("campaign_id")
        await self.rewards.create_index("conversion_id")

        # Referral codes double as the business code on the lead form
        await self.users.create_index("referral_code", sparse=True)

        # Business contact list: one row per email
        await self.business_customers.create_index(
            [("business_id", 1), ("email", 1)],
            unique=True,
            name="business_email_unique",
        )
        await self.business_customers.create_index([("business_id", 1), ("created_at", -1)])

        # A referrer puts a person forward once per business
        await self.referral_leads.create_index(
            [("business_id", 1), ("referrer_id", 1), ("email", 1)],
            unique=True,
            name="lead_unique",
        )
        await self.daily_stats.create_index([("business_id", 1), ("date", 1)], unique=True)

        # Tasks and their submissions
        await self.campaign_tasks.create_index([("campaign_id", 1), ("created_at", -1)])
        await self.task_completions.create_index(
            [("task_id", 1), ("user_id", 1)],
            unique=True,
            name="task_user_unique",
        )
        await self.task_completions.create_index([("user_id", 1), ("created_at", -1)])


def get_db(request: Request) -> MongoManager:
    return request.app.state.mongo
