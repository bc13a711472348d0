"""New-article detection for one link."""

from typing import Dict, List, Set

from ..models import Feed, StoredDocument
from .models import Article, LinkLogicResult, NewArticle


class LinkLogic:
    """Decide which parsed articles are new for each feed sharing a link.

    An article with an unseen id is new unless one of the feed's negative
    comparison values was already stored. An article with a seen id is new
    again when one of the feed's positive comparison values was never stored.
    """

    def __init__(self, article_list: List[Article], feeds: List[Feed]) -> None:
        self.article_list = article_list
        self.feeds = feeds

    def _stored_values(self, docs: List[StoredDocument]) -> Dict[str, Set[str]]:
        values: Dict[str, Set[str]] = {}
        for doc in docs:
            for key, value in doc.properties.items():
                values.setdefault(key, set()).add(value)
        return values

    def _is_new(
        self,
        article: Article,
        feed: Feed,
        seen_ids: Set[str],
        stored: Dict[str, Set[str]],
    ) -> bool:
        if article.id not in seen_ids:
            for key in feed.ncomparisons:
                value = article.get_field(key)
                if value and value in stored.get(key, set()):
                    return False
            return True

        for key in feed.pcomparisons:
            value = article.get_field(key)
            if value and value not in stored.get(key, set()):
                return True
        return False

    def run(self, docs: List[StoredDocument]) -> LinkLogicResult:
        seen_ids = {doc.id for doc in docs}
        stored = self._stored_values(docs)

        new_articles = []
        for feed in self.feeds:
            if not feed.is_enabled:
                continue
            # Values claimed earlier in this same article list count as stored
            claimed = {key: set(values) for key, values in stored.items()}
            for article in self.article_list:
                if not self._is_new(article, feed, seen_ids, claimed):
                    continue
                new_articles.append(NewArticle(article=article, feed=feed))
                for key in feed.ncomparisons:
                    value = article.get_field(key)
                    if value:
                        claimed.setdefault(key, set()).add(value)

        return LinkLogicResult(new_articles=new_articles)
