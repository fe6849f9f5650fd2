"""
Webhook Service — Posts the final session snapshot to the CRM webhook on submit.
Best effort: failures are logged and never roll back the stored session.
"""
from typing import Dict, Any

import requests

from app.config import get_settings
from app.schemas.lead import SessionState
from app.utils.hashing import generate_hash
from app.utils.logger import get_logger

logger = get_logger(__name__)


class WebhookService:

    @staticmethod
    def build_payload(state: SessionState) -> Dict[str, Any]:
        """Full snapshot in snake_case, including attribution and created_at."""
        return state.model_dump(mode="json", exclude={"id", "updated_at"})

    @staticmethod
    def deliver(state: SessionState) -> Dict[str, Any]:
        """POST the snapshot. Never raises."""
        settings = get_settings()
        if not settings.WEBHOOK_URL:
            logger.debug(f"[WEBHOOK] Not configured, skipped session {state.session_id}")
            return {"success": False, "skipped": True}

        payload = WebhookService.build_payload(state)
        headers = {
            "Content-Type": "application/json",
            "X-Payload-SHA256": generate_hash(payload),
        }

        try:
            response = requests.post(
                settings.WEBHOOK_URL,
                json=payload,
                headers=headers,
                timeout=settings.WEBHOOK_TIMEOUT_SECONDS,
            )
        except requests.Timeout:
            logger.warning(f"[WEBHOOK] Timeout | session={state.session_id}")
            return {"success": False, "error": "Request timed out"}
        except requests.RequestException as e:
            logger.error(f"[WEBHOOK] Error | session={state.session_id} | error={e}")
            return {"success": False, "error": str(e)}

        if 200 <= response.status_code < 300:
            logger.info(f"[WEBHOOK] Delivered | session={state.session_id} | status={response.status_code}")
            return {"success": True, "status_code": response.status_code}

        logger.warning(f"[WEBHOOK] Failed | session={state.session_id} | status={response.status_code}")
        return {"success": False, "status_code": response.status_code, "error": response.text[:500]}
