from contextlib import asynccontextmanager
from datetime import datetime, timezone
from fastapi import FastAPI
from fastapi.concurrency import run_in_threadpool
from fastapi.middleware.cors import CORSMiddleware
import logging

from . import config

# Configure basic logging
logging.basicConfig(level=config.LOG_LEVEL, format='%(asctime)s - %(name)s - %(levelname)s - %(message)s')

from .models.wallet_models import HealthResponse
from .nonce_store import get_nonce_store
from .routers import wallet
from .services.notification_service import get_notifier

logger = logging.getLogger(__name__)

@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup: report whether login alerts can be delivered
    notifier = get_notifier()
    if notifier.configured:
        # SMTP connect blocks; keep it off the event loop
        await run_in_threadpool(notifier.verify_connection)
    else:
        logger.warning("Email transport not configured. Login alerts will be logged as errors and skipped.")
    yield
    # Shutdown: outstanding nonces do not outlive the process
    logger.info("Shutting down, discarding outstanding nonces")
    get_nonce_store().clear()

app = FastAPI(
    title="Wallet Verification API",
    description="Challenge-response proof of wallet ownership: issue a nonce, verify the signed message, alert by email.",
    version="0.1.0",
    lifespan=lifespan,
)

# --- CORS Configuration ---
app.add_middleware(
    CORSMiddleware,
    allow_origins=[config.FRONTEND_URL],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(wallet.router)


@app.get("/", tags=["Health Check"], response_model=HealthResponse)
def read_root():
    """Root endpoint for health check."""
    return HealthResponse(
        message="Wallet Verification API is running",
        timestamp=datetime.now(timezone.utc).isoformat(),
    )


# --- Server Startup (for local development) ---
if __name__ == "__main__":
    import uvicorn
    uvicorn.run("wallet_verify.main:app", host="0.0.0.0", port=8000, reload=True)
