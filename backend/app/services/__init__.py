from app.services.lead_classifier import LeadClassifier
from app.services.slot_service import SlotService
from app.services.session_store import SessionStore
from app.services.orchestrator import SessionOrchestrator
from app.services.notification_service import NotificationService
from app.services.webhook_service import WebhookService
from app.services.reporting_service import ReportingService

__all__ = [
    "LeadClassifier", "SlotService", "SessionStore", "SessionOrchestrator",
    "NotificationService", "WebhookService", "ReportingService",
]
