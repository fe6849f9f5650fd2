"""
Notification Service — Sends funnel events to the Meta Conversions API.
Fire-and-forget: every failure is logged and swallowed.
"""
import time
from dataclasses import dataclass
from typing import Dict, Any, List, Optional

import requests

from app.config import get_settings
from app.schemas.lead import SessionState
from app.utils.hashing import hash_identity
from app.utils.logger import get_logger
from app.utils.validators import split_name

logger = get_logger(__name__)


@dataclass
class ClientContext:
    """Browser-side identity captured from the request."""
    ip_address: Optional[str] = None
    user_agent: Optional[str] = None
    fbp: Optional[str] = None
    fbc: Optional[str] = None
    source_url: Optional[str] = None


class NotificationService:

    @staticmethod
    def event_id(session_id: str, event_name: str, counter: int, timestamp_ms: Optional[int] = None) -> str:
        """Idempotency key: {session_id}_{event_name}_{timestamp_ms}_{counter}."""
        if timestamp_ms is None:
            timestamp_ms = int(time.time() * 1000)
        return f"{session_id}_{event_name}_{timestamp_ms}_{counter}"

    @staticmethod
    def build_user_data(state: SessionState, client: Optional[ClientContext] = None) -> Dict[str, Any]:
        """Identity payload. Personal fields are SHA-256 hashed; cookies and ids are not."""
        first, last = split_name(state.parent_name or state.student_name)
        phone_digits = state.phone_number.lstrip("+") if state.phone_number else None

        user_data = {
            "em": hash_identity(state.parent_email),
            "ph": hash_identity(phone_digits),
            "fn": hash_identity(first),
            "ln": hash_identity(last),
            "ct": hash_identity(state.location),
            "external_id": state.session_id,
        }
        if client:
            user_data.update({
                "client_ip_address": client.ip_address,
                "client_user_agent": client.user_agent,
                "fbp": client.fbp,
                "fbc": client.fbc,
            })
        return {k: v for k, v in user_data.items() if v}

    @staticmethod
    def send_event(
        event_name: str,
        state: SessionState,
        counter: int,
        client: Optional[ClientContext] = None,
    ) -> Dict[str, Any]:
        """Send one event. Never raises.

        Args:
            event_name: Base event name; the environment suffix is appended here.
            state: Session the event belongs to.
            counter: Per-session sequence number for the idempotency key.
            client: Request-side identity, if known.

        Returns:
            Delivery result dict with the event_id used.
        """
        settings = get_settings()
        full_name = f"{event_name}{settings.env_suffix}"
        event_id = NotificationService.event_id(state.session_id, full_name, counter)

        if not (settings.META_PIXEL_ID and settings.META_CAPI_ACCESS_TOKEN):
            logger.debug(f"[CAPI] Not configured, skipped {full_name} ({event_id})")
            return {"success": False, "skipped": True, "event_id": event_id}

        payload = {
            "data": [{
                "event_name": full_name,
                "event_time": int(time.time()),
                "event_id": event_id,
                "event_source_url": client.source_url if client else None,
                "action_source": "website",
                "user_data": NotificationService.build_user_data(state, client),
            }],
            "access_token": settings.META_CAPI_ACCESS_TOKEN,
        }
        url = f"https://graph.facebook.com/{settings.META_API_VERSION}/{settings.META_PIXEL_ID}/events"

        try:
            response = requests.post(url, json=payload, timeout=settings.NOTIFICATION_TIMEOUT_SECONDS)
        except requests.RequestException as e:
            logger.warning(f"[CAPI] Error | event={full_name} | id={event_id} | error={e}")
            return {"success": False, "error": str(e), "event_id": event_id}

        if 200 <= response.status_code < 300:
            logger.info(f"[CAPI] Sent | event={full_name} | id={event_id}")
            return {"success": True, "status_code": response.status_code, "event_id": event_id}

        logger.warning(f"[CAPI] Failed | event={full_name} | status={response.status_code}")
        return {
            "success": False,
            "status_code": response.status_code,
            "error": response.text[:500],
            "event_id": event_id,
        }

    @staticmethod
    def dispatch(event_names: List[str], state: SessionState, client: Optional[ClientContext] = None) -> List[Dict[str, Any]]:
        """Send a batch of events for a session.

        The counter is the event's 1-based position in the session's
        triggered_events, so replays reuse the same sequence number.
        """
        results = []
        for name in event_names:
            if name in state.triggered_events:
                counter = state.triggered_events.index(name) + 1
            else:
                counter = len(state.triggered_events) + 1
            results.append(NotificationService.send_event(name, state, counter, client))
        return results
