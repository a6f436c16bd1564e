"""
Application configuration settings loaded from environment variables.
Uses pydantic_settings for validation and type conversion.
"""
from enum import Enum
from typing import Dict, List, Optional

from pydantic_settings import BaseSettings


class StorageBackend(str, Enum):
    SQL = "sql"
    MEMORY = "memory"


class EnrichmentBackend(str, Enum):
    PLACEHOLDER = "placeholder"
    OPENAI = "openai"


class NotificationBackend(str, Enum):
    LOG = "log"
    EMAIL = "email"


class MergePolicy(str, Enum):
    """
    How a doctor response lands on the patient's intake record.

    UPSERT merges into the record keyed by patientId and creates it when
    missing. REQUIRE_EXISTING refuses responses for unknown patients.
    """
    UPSERT = "upsert"
    REQUIRE_EXISTING = "require_existing"


DEFAULT_ENDPOINT_METHODS = {
    "/intake": "OPTIONS,POST,GET",
    "/doctor-response": "OPTIONS,POST",
    "/doctors": "OPTIONS,GET",
    "/patients": "OPTIONS,GET",
}


class Settings(BaseSettings):
    """
    Application settings class with environment variable validation.

    Attributes:
        app_name: Title reported by the API
        log_level: Root logging level

        # CORS settings
        cors_allow_origin: Value of Access-Control-Allow-Origin
        cors_allow_headers: Value of Access-Control-Allow-Headers
        cors_endpoint_methods: Allowed methods per endpoint path prefix
        cors_default_methods: Allowed methods for paths not listed above

        # Storage settings
        storage_backend: "sql" or "memory"
        database_url: SQLAlchemy connection string
        intake_table_name: Table holding intake records

        # Enrichment settings
        enrichment_backend: "placeholder" or "openai"
        ai_model_id: Chat model used for clinical summaries
        openai_api_key: API key for the OpenAI adapter
        openai_base_url: Optional alternative endpoint for the OpenAI adapter
        ai_max_tokens: Completion budget for a summary

        # Notification settings
        notification_backend: "log" or "email"
        mail_*: SMTP connection settings
        notification_recipients: Comma-separated addresses that receive patient notifications
        smtp_timeout: Socket timeout in seconds
        smtp_max_attempts: Delivery attempts per notification

        # Identity settings
        auth_required: Reject anonymous callers on protected routes
        jwt_secret_key: Key used to verify bearer tokens
        jwt_algorithm: Signing algorithm for bearer tokens
        jwt_audience: Expected audience claim (optional)
        doctor_group: Group a caller needs for doctor-only routes
        access_token_expire_minutes: Lifetime of tokens issued for development

        # Behaviour
        doctor_response_merge_policy: See MergePolicy
        expose_error_details: Include exception text in 500 responses
    """
    app_name: str = "Clinic Intake API"
    log_level: str = "INFO"

    # CORS settings
    cors_allow_origin: str = "*"
    cors_allow_headers: str = "*"
    cors_endpoint_methods: Dict[str, str] = dict(DEFAULT_ENDPOINT_METHODS)
    cors_default_methods: str = "OPTIONS,GET,POST"

    # Storage settings
    storage_backend: StorageBackend = StorageBackend.SQL
    database_url: str = "sqlite:///./clinic_intake.db"
    intake_table_name: str = "patient_intake"

    # Enrichment settings
    enrichment_backend: EnrichmentBackend = EnrichmentBackend.PLACEHOLDER
    ai_model_id: str = "gpt-4o-mini"
    openai_api_key: Optional[str] = None
    openai_base_url: Optional[str] = None
    ai_max_tokens: int = 600

    # Notification settings
    notification_backend: NotificationBackend = NotificationBackend.LOG
    mail_server: Optional[str] = None
    mail_port: int = 587
    mail_username: Optional[str] = None
    mail_password: Optional[str] = None
    mail_from: Optional[str] = None
    mail_starttls: bool = True
    notification_recipients: str = ""
    smtp_timeout: int = 30
    smtp_max_attempts: int = 1

    # Identity settings
    auth_required: bool = False
    jwt_secret_key: str = "change-me"
    jwt_algorithm: str = "HS256"
    jwt_audience: Optional[str] = None
    doctor_group: str = "doctor"
    access_token_expire_minutes: int = 30

    # Behaviour
    doctor_response_merge_policy: MergePolicy = MergePolicy.UPSERT
    expose_error_details: bool = True

    @property
    def recipient_list(self) -> List[str]:
        """Notification recipients parsed from the comma-separated setting."""
        return [address.strip() for address in self.notification_recipients.split(",") if address.strip()]

    def allowed_methods_for(self, path: str) -> str:
        """
        Resolve the Access-Control-Allow-Methods value for a request path.

        The longest configured prefix wins, so "/patients/abc" uses the
        "/patients" entry.
        """
        best = None
        for prefix in self.cors_endpoint_methods:
            if path == prefix or path.startswith(prefix.rstrip("/") + "/"):
                if best is None or len(prefix) > len(best):
                    best = prefix
        if best is None:
            return self.cors_default_methods
        return self.cors_endpoint_methods[best]

    def cors_headers_for(self, path: str) -> Dict[str, str]:
        """Cross-origin headers attached to every response for a path."""
        return {
            "Access-Control-Allow-Origin": self.cors_allow_origin,
            "Access-Control-Allow-Headers": self.cors_allow_headers,
            "Access-Control-Allow-Methods": self.allowed_methods_for(path),
        }

    class Config:
        """Configuration for environment variables loading"""
        env_file = ".env"
        case_sensitive = False


def get_settings() -> Settings:
    return Settings()
