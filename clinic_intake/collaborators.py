"""
External collaborators wired into the application.

Handlers only see the interfaces below; which implementation backs each one
is decided here from Settings, or passed in directly by tests.
"""
from dataclasses import dataclass
import logging

from .auth.service import IdentityProvider, JWTIdentityProvider
from .config import EnrichmentBackend, NotificationBackend, Settings, StorageBackend
from .database import create_db_engine
from .enrichment.service import OpenAISummarizer, PlaceholderSummarizer, Summarizer
from .notifications.service import EmailNotifier, LoggingNotifier, Notifier
from .storage.repository import InMemoryIntakeRepository, IntakeRepository, SQLAlchemyIntakeRepository

logger = logging.getLogger(__name__)


@dataclass
class Collaborators:
    """
    Bundle of external collaborators.

    Attributes:
        repository: Persistence for intake records
        summarizer: AI enrichment
        notifier: Patient notifications
        identity: Bearer token verification
    """
    repository: IntakeRepository
    summarizer: Summarizer
    notifier: Notifier
    identity: IdentityProvider


def build_repository(settings: Settings) -> IntakeRepository:
    if settings.storage_backend == StorageBackend.MEMORY:
        return InMemoryIntakeRepository()
    engine = create_db_engine(settings.database_url)
    return SQLAlchemyIntakeRepository(engine, table_name=settings.intake_table_name)


def build_summarizer(settings: Settings) -> Summarizer:
    if settings.enrichment_backend == EnrichmentBackend.OPENAI:
        return OpenAISummarizer(
            model=settings.ai_model_id,
            api_key=settings.openai_api_key,
            base_url=settings.openai_base_url,
            max_tokens=settings.ai_max_tokens
        )
    return PlaceholderSummarizer()


def build_notifier(settings: Settings) -> Notifier:
    if settings.notification_backend == NotificationBackend.EMAIL:
        return EmailNotifier(
            server=settings.mail_server,
            port=settings.mail_port,
            sender=settings.mail_from,
            recipients=settings.recipient_list,
            username=settings.mail_username,
            password=settings.mail_password,
            starttls=settings.mail_starttls,
            timeout=settings.smtp_timeout,
            max_attempts=settings.smtp_max_attempts
        )
    return LoggingNotifier()


def build_identity_provider(settings: Settings) -> IdentityProvider:
    return JWTIdentityProvider(
        secret_key=settings.jwt_secret_key,
        algorithm=settings.jwt_algorithm,
        audience=settings.jwt_audience,
        access_token_expire_minutes=settings.access_token_expire_minutes
    )


def build_collaborators(settings: Settings) -> Collaborators:
    """
    Create the collaborators selected by configuration.

    Args:
        settings: Application settings

    Returns:
        Collaborators: Ready-to-use collaborator bundle
    """
    collaborators = Collaborators(
        repository=build_repository(settings),
        summarizer=build_summarizer(settings),
        notifier=build_notifier(settings),
        identity=build_identity_provider(settings)
    )
    logger.info(
        f"Collaborators: storage={settings.storage_backend.value}, "
        f"enrichment={settings.enrichment_backend.value}, "
        f"notification={settings.notification_backend.value}"
    )
    return collaborators
