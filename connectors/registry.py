from connectors.base import SourceConnector
from connectors.airtable import AirtableConnector
from connectors.forum import ea_forum_connector, lesswrong_connector
from connectors.eventbrite import EventbriteConnector
from connectors.luma import LumaConnector
from connectors.meetup import MeetupConnector
from typing import Callable, Dict, List, Optional

# Run order: curated listings first, then keyword searches
CONNECTOR_FACTORIES: Dict[str, Callable[..., SourceConnector]] = {
    "aisafety": AirtableConnector,
    "ea-forum": ea_forum_connector,
    "lesswrong": lesswrong_connector,
    "eventbrite": EventbriteConnector,
    "luma": LumaConnector,
    "meetup": MeetupConnector,
}


def available_sources() -> List[str]:
    return list(CONNECTOR_FACTORIES)


def build_connectors(only: Optional[List[str]] = None, **kwargs) -> List[SourceConnector]:
    """Instantiate connectors in run order, optionally restricted to some source tags"""
    if only:
        unknown = [source for source in only if source not in CONNECTOR_FACTORIES]
        if unknown:
            raise ValueError(f"Unknown source(s): {', '.join(unknown)}")
    return [
        factory(**kwargs)
        for source, factory in CONNECTOR_FACTORIES.items()
        if not only or source in only
    ]
