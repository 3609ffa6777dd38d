from contextlib import asynccontextmanager
import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from renewly.core.config import settings
from renewly.routers import assistant, health, insights
from renewly.utils.history import ConversationHistoryStore

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup: configure logging and create the conversation history store
    logging.basicConfig(level=settings.LOG_LEVEL)
    logger.info(f"Starting {settings.PROJECT_NAME} (history capacity={settings.HISTORY_CAPACITY})")
    app.state.history_store = ConversationHistoryStore(capacity=settings.HISTORY_CAPACITY)
    yield
    # Shutdown: drop in-memory conversation state
    logger.info("Shutting down, discarding conversation history")
    app.state.history_store = None


app = FastAPI(
    title=settings.PROJECT_NAME,
    debug=settings.DEBUG,
    lifespan=lifespan
)

# CORS configuration
app.add_middleware(
    CORSMiddleware,
    allow_origins=[
        "http://localhost:3000",
        "http://localhost:5173",
        "http://localhost:8000",
    ],
    allow_credentials=True,
    allow_methods=["GET", "POST", "DELETE", "OPTIONS"],
    allow_headers=["*"],
    max_age=3600,
)

# Root endpoint
@app.get("/")
def root():
    return {"message": f"Welcome to {settings.PROJECT_NAME} API"}


# Register routers
app.include_router(health.router, prefix=f"{settings.API_PREFIX}", tags=["Health"])  # /api/health
app.include_router(insights.router, prefix=f"{settings.API_PREFIX}/insights", tags=["Insights"])
app.include_router(assistant.router, prefix=f"{settings.API_PREFIX}/assistant", tags=["Assistant"])
