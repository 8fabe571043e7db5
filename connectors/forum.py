from connectors.base import SourceConnector
from models.candidate import RawEventRecord
from utils.errors import UpstreamFetchError
from typing import Any, Dict, List, Optional
import logging

logger = logging.getLogger(__name__)

EVENTS_QUERY = """
query multiPostQuery($input: MultiPostInput) {
  posts(input: $input) {
    results {
      _id
      title
      url
      location
      onlineEvent
      globalEvent
      startTime
      endTime
      isEvent
      contents {
        plaintextDescription
      }
    }
  }
}
"""


class ForumConnector(SourceConnector):
    """Events posted on a ForumMagnum site (EA Forum, LessWrong)"""

    curated = True

    def __init__(self, source: str, name: str, hostname: str, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.source = source
        self.name = name
        self.hostname = hostname

    def fetch_records(self) -> List[RawEventRecord]:
        return self.run_strategies("nearbyEvents", [("graphql", self._from_graphql)])

    def _from_graphql(self) -> List[RawEventRecord]:
        payload = {
            "query": EVENTS_QUERY,
            "variables": {
                "input": {
                    "terms": {
                        "view": "nearbyEvents",
                        "isEvent": True,
                        "limit": 200,
                        "lat": 0,
                        "lng": 0,
                        "distance": 50000,
                    }
                }
            },
        }
        data = self.post_json(f"https://{self.hostname}/graphql", payload)
        if data.get("errors"):
            raise UpstreamFetchError(f"GraphQL errors from {self.hostname}: {data['errors']}")

        posts = ((data.get("data") or {}).get("posts") or {}).get("results") or []
        return [record for record in (self.parse_post(post) for post in posts) if record]

    def parse_post(self, post: Dict[str, Any]) -> Optional[RawEventRecord]:
        if not post.get("title") or not post.get("startTime"):
            return None

        contents = post.get("contents") or {}
        return RawEventRecord(
            source=self.source,
            source_id=post["_id"],
            title=post["title"],
            url=post.get("url") or f"https://{self.hostname}/events/{post['_id']}",
            description=contents.get("plaintextDescription"),
            source_org=self.name,
            location=post.get("location"),
            is_online=bool(post.get("onlineEvent")),
            is_global=bool(post.get("globalEvent")),
            start=post.get("startTime"),
            end=post.get("endTime"),
        )


def ea_forum_connector(**kwargs) -> ForumConnector:
    return ForumConnector("ea-forum", "EA Forum", "forum.effectivealtruism.org", **kwargs)


def lesswrong_connector(**kwargs) -> ForumConnector:
    return ForumConnector("lesswrong", "LessWrong", "www.lesswrong.com", **kwargs)
