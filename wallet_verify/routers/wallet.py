from fastapi import APIRouter, BackgroundTasks, Depends, Request, status
from fastapi.responses import JSONResponse
from datetime import datetime, timezone
from typing import Dict
import logging

from ..errors import InvalidInput, MissingField, VerificationError
from ..models.wallet_models import NonceResponse, NonceErrorResponse, VerifyRequest, VerifyResponse
from ..nonce_store import NonceStore, get_nonce_store
from ..services.notification_service import LOGIN_ALERT_SUBJECT, SmtpNotifier, get_notifier
from ..services.verification_service import VerificationService
from .. import config

router = APIRouter(
    prefix="/api",
    tags=["Wallet Verification"],
)

logger = logging.getLogger(__name__)

def get_verification_service(store: NonceStore = Depends(get_nonce_store)) -> VerificationService:
    return VerificationService(store)

def _client_ip(request: Request) -> str:
    return request.client.host if request.client else "unknown"

# --- Post-verification hook ---
def send_login_alert(notifier: SmtpNotifier, email: str, monitoring_email: str | None, body_fields: Dict[str, str]):
    """
    Runs after the response has been sent. A failed email is logged and
    never changes the verification result.
    """
    try:
        notifier.send(email, monitoring_email, LOGIN_ALERT_SUBJECT, body_fields)
    except Exception as e:
        logger.error(f"Email error | Address: {body_fields.get('address')}: {e}", exc_info=True)

# --- API Endpoints ---
@router.get(
    "/nonce",
    response_model=NonceResponse,
    responses={status.HTTP_400_BAD_REQUEST: {"model": NonceErrorResponse}}
)
def get_nonce(request: Request, address: str | None = None, store: NonceStore = Depends(get_nonce_store)):
    """
    Issues a one-time nonce for `address`, replacing any nonce it already had.

    The client signs `Sign to verify ownership:\\nNonce: <nonce>` and posts it to /api/verify.
    """
    if not address:
        logger.warning("Nonce request failed: no address")
        return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content={"error": "Address required"})

    try:
        nonce = store.issue(address)
    except InvalidInput as e:
        logger.warning(f"Nonce request failed: {e}")
        return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content={"error": "Invalid address"})

    logger.info(f"Nonce generated | Address: {address} | Nonce: {nonce} | IP: {_client_ip(request)}")
    return NonceResponse(nonce=nonce)

@router.post(
    "/verify",
    response_model=VerifyResponse,
    responses={
        status.HTTP_400_BAD_REQUEST: {"model": VerifyResponse},
        status.HTTP_401_UNAUTHORIZED: {"model": VerifyResponse},
    }
)
def verify_signature(
    verify_request: VerifyRequest,
    request: Request,
    background_tasks: BackgroundTasks,
    service: VerificationService = Depends(get_verification_service),
    notifier: SmtpNotifier = Depends(get_notifier),
):
    """
    Verifies that `signature` was produced by `address` over the message for `nonce`.

    On success the nonce is consumed and a login alert is emailed to `email`
    and the monitoring mailbox after the response is sent.
    """
    try:
        outcome = service.verify(verify_request)
    except MissingField as e:
        logger.warning(f"Verification failed: missing data ({e.field})")
        return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content={"success": False})
    except VerificationError:
        # Already logged by the service with the specific reason
        return JSONResponse(status_code=status.HTTP_401_UNAUTHORIZED, content={"success": False})
    except Exception as e:
        logger.error(f"Unexpected error during wallet verification: {e}", exc_info=True)
        return JSONResponse(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, content={"success": False})

    client_ip = _client_ip(request)
    logger.info(f"Wallet verified | Address: {outcome.address} | IP: {client_ip}")

    background_tasks.add_task(
        send_login_alert,
        notifier,
        verify_request.email,
        config.MONITORING_EMAIL,
        {
            "address": verify_request.address,
            "email": verify_request.email,
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "source_ip": client_ip,
        },
    )
    return VerifyResponse(success=True)
