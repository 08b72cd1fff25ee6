"""FastAPI application entry point."""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI

from decision_engine.api.router import api_router
from decision_engine.config import settings
from decision_engine.db.turso import TursoClient
from decision_engine.engine.service import DecisionEngine
from decision_engine.events import (
    AUDITED_EVENT_TYPES,
    EventBus,
    EventStore,
    RuleTriggered,
    RuleTriggerNotifier,
)
from decision_engine.repositories.recommendation_repo import RecommendationRepository
from decision_engine.repositories.rule_repo import RuleRepository
from decision_engine.repositories.template_repo import TemplateRepository
from decision_engine.rules.service import RuleService

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.log_level.upper()),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
structlog.configure(
    wrapper_class=structlog.make_filtering_bound_logger(
        getattr(logging, settings.log_level.upper())
    ),
)
logger = logging.getLogger(__name__)


async def build_services(app: FastAPI, db: TursoClient) -> None:
    """Create stores, audit log, event bus and services on app state."""
    rule_repo = RuleRepository(db)
    await rule_repo.initialize()
    recommendation_repo = RecommendationRepository(db)
    await recommendation_repo.initialize()
    template_repo = TemplateRepository(db)
    await template_repo.initialize()
    logger.info("Rule, recommendation and template stores initialized")

    event_bus = EventBus()
    if settings.audit_events:
        event_store = EventStore(db)
        await event_store.init_schema()
        for event_type in AUDITED_EVENT_TYPES:
            event_bus.subscribe(event_type, event_store.append)
        app.state.event_store = event_store
        logger.info(f"Audit log subscribed to {len(AUDITED_EVENT_TYPES)} event types")

    notifier = RuleTriggerNotifier()
    event_bus.subscribe(RuleTriggered, notifier.handle)
    app.state.notifier = notifier

    app.state.event_bus = event_bus
    app.state.rule_repo = rule_repo
    app.state.recommendation_repo = recommendation_repo
    app.state.template_repo = template_repo
    app.state.decision_engine = DecisionEngine(
        rule_store=rule_repo,
        recommendation_store=recommendation_repo,
        event_bus=event_bus,
    )
    app.state.rule_service = RuleService(rule_repo, template_repo)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan management.

    Startup:
    - Initialize database connection
    - Initialize stores, audit log and services

    Shutdown:
    - Close database connection
    """
    logger.info(f"Starting {settings.app_name}...")

    db = TursoClient()
    await db.connect()
    app.state.db = db
    logger.info(f"Database connected: {db.url}")

    await build_services(app, db)
    yield

    logger.info(f"Shutting down {settings.app_name}...")
    await db.close()


app = FastAPI(
    title=settings.app_name,
    description="Rule-based decision recommendations for business events",
    version=settings.app_version,
    lifespan=lifespan,
)

app.include_router(api_router)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "decision_engine.main:app",
        host="0.0.0.0",
        port=8000,
        reload=True,
    )
