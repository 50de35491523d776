"""Outbound payment-provider links."""

from typing import Any, Dict, Iterable, List, Optional

from loguru import logger

from ..errors import RecordNotFound
from ..storage.database import Database
from .validation import validate_provider_link

PROVIDER_LINKS = "provider_links"


def checkout_links(
    links: Iterable[Dict[str, Any]], hidden_keywords: Iterable[str] = ()
) -> List[Dict[str, Any]]:
    """Links offered at checkout, ordered by name.

    Links whose name contains any hidden keyword (case-insensitive) are
    left out.
    """
    hidden = [keyword.lower() for keyword in hidden_keywords if keyword]
    visible = [
        link
        for link in links
        if not any(keyword in (link.get("name") or "").lower() for keyword in hidden)
    ]
    return sorted(visible, key=lambda link: (link.get("name") or "").lower())


class ProviderLinkService:
    """Creates, edits and removes provider links."""

    def __init__(self, db: Database):
        self.db = db

    def save_provider_link(self, link_id: Optional[int], fields: Dict[str, Any]) -> Dict[str, Any]:
        changes = {
            key: value.strip() if isinstance(value, str) else value
            for key, value in fields.items()
            if key in ("name", "url")
        }

        if link_id is None:
            validate_provider_link(changes)
            link = self.db.insert(PROVIDER_LINKS, changes)
            logger.info(f"Added provider link {link['name']} -> {link['url']}")
            return link

        current = self.db.get(PROVIDER_LINKS, link_id)
        if current is None:
            raise RecordNotFound(PROVIDER_LINKS, link_id)

        validate_provider_link({"name": current["name"], "url": current["url"], **changes})
        self.db.update(PROVIDER_LINKS, link_id, changes)
        logger.info(f"Updated provider link {link_id}")
        return changes

    def delete_provider_link(self, link_id: int):
        self.db.delete(PROVIDER_LINKS, link_id)
        logger.info(f"Deleted provider link {link_id}")
