# refhub/main.py
import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.encoders import jsonable_encoder
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from refhub.config import CORS_ALLOW_ORIGINS, LOG_LEVEL
from refhub.db.mongo import MongoManager

# Routers
from refhub.routes.analytics import router as analytics_router
from refhub.routes.auth import router as auth_router
from refhub.routes.campaign_tasks import router as campaign_tasks_router
from refhub.routes.campaigns import router as campaigns_router
from refhub.routes.coupons import router as coupons_router
from refhub.routes.customer import router as customer_router
from refhub.routes.customers import router as customers_router
from refhub.routes.referrals import router as referrals_router
from refhub.routes.referrer import router as referrer_router
from refhub.routes.task_completions import router as task_completions_router


def create_app(mongo: Optional[MongoManager] = None) -> FastAPI:
    logging.basicConfig(level=LOG_LEVEL, format="%(asctime)s %(levelname)s %(name)s: %(message)s")

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        manager = app.state.mongo
        await manager.connect()
        try:
            await manager.init_db_indexes()
        except Exception:
            # Serve anyway; writes still work without the secondary indexes
            logging.exception("Index init error")
        yield
        await manager.close()

    # ---------------------------
    # Build FastAPI app
    # ---------------------------
    app = FastAPI(title="Referral Hub API", version="1.0.0", lifespan=lifespan)
    app.state.mongo = mongo or MongoManager()

    app.add_middleware(
        CORSMiddleware,
        allow_origins=CORS_ALLOW_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # ---------------------------
    # Error handlers
    # ---------------------------
    @app.exception_handler(RequestValidationError)
    async def validation_error(request: Request, exc: RequestValidationError):
        return JSONResponse(status_code=400, content={"detail": jsonable_encoder(exc.errors())})

    @app.exception_handler(Exception)
    async def unhandled_error(request: Request, exc: Exception):
        logging.exception("Unhandled error on %s %s", request.method, request.url.path)
        return JSONResponse(status_code=500, content={"detail": "Internal server error"})

    @app.get("/health")
    async def health_check():
        return {"status": "✅ OK", "message": "Referral Hub API is running."}

    @app.get("/")
    async def root():
        return {"message": "👋 Welcome to the Referral Hub API!"}

    # ---------------------------
    # Routers
    # ---------------------------
    app.include_router(auth_router, prefix="/api")
    app.include_router(campaigns_router, prefix="/api")
    app.include_router(referrer_router, prefix="/api")
    app.include_router(customer_router, prefix="/api")
    app.include_router(referrals_router, prefix="/api")
    app.include_router(analytics_router, prefix="/api")
    app.include_router(coupons_router, prefix="/api")
    app.include_router(customers_router, prefix="/api")
    app.include_router(campaign_tasks_router, prefix="/api")
    app.include_router(task_completions_router, prefix="/api")

    return app


app = create_app()
