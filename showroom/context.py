"""Application wiring shared by the API and the CLI."""

from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from loguru import logger

from .auth.session import AdminSession, SessionStore
from .auth.verifier import CredentialVerifier, HttpCredentialVerifier
from .catalog.listings import ListingService
from .catalog.memberships import MembershipService
from .catalog.providers import ProviderLinkService
from .financing.amortization import FinancingTerms
from .financing.pricing import PricingTable
from .realtime.feed import ChangeFeed
from .realtime.subscriber import ChangeFeedSubscriber
from .realtime.supervisor import FeedSupervisor
from .storage.database import Database
from .utils.config import Config, get_config


@dataclass
class AppContext:
    """Everything a view or request handler needs, built once per process."""

    config: Config
    db: Database
    feed: ChangeFeed
    subscriber: ChangeFeedSubscriber
    supervisor: FeedSupervisor
    session: AdminSession
    terms: FinancingTerms
    pricing: PricingTable
    listings: ListingService
    memberships: MembershipService
    providers: ProviderLinkService


def _ensure_sqlite_dir(db_url: str):
    prefix = "sqlite:///"
    if db_url.startswith(prefix) and ":memory:" not in db_url:
        path = db_url[len(prefix):]
        if path:
            Path(path).parent.mkdir(parents=True, exist_ok=True)


def build_context(
    config: Optional[Config] = None,
    verifier: Optional[CredentialVerifier] = None,
) -> AppContext:
    """Wire the gateway, change feed, session and services from configuration.

    Args:
        config: Configuration, defaults to the global config
        verifier: Credential verifier, defaults to the HTTP identity service
    """
    config = config or get_config()

    _ensure_sqlite_dir(config.database.url)
    feed = ChangeFeed()
    db = Database(config.database.url, feed=feed, echo=config.database.echo)

    subscriber = ChangeFeedSubscriber.from_config(feed, config.realtime)
    supervisor = FeedSupervisor(subscriber, config.realtime.supervisor_interval_seconds)

    if verifier is None:
        verifier = HttpCredentialVerifier(config.admin.identity_url, config.admin.identity_timeout)
    session = AdminSession(SessionStore(config.admin.session_file), verifier)
    session.load()

    terms = FinancingTerms.from_config(config.financing)
    pricing = PricingTable.from_config(config.pricing)

    logger.info("Application context ready")
    return AppContext(
        config=config,
        db=db,
        feed=feed,
        subscriber=subscriber,
        supervisor=supervisor,
        session=session,
        terms=terms,
        pricing=pricing,
        listings=ListingService(db, terms),
        memberships=MembershipService(db, pricing),
        providers=ProviderLinkService(db),
    )
