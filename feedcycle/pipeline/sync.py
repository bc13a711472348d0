"""Diffing parsed articles against stored documents."""

from typing import Dict, Iterable, List, Set, Tuple

from pydantic import BaseModel

from ..ingestion.models import Article
from ..models import Feed, StoredDocument


class SyncMeta(BaseModel):
    """Where new documents are filed."""

    feed_url: str
    schedule_name: str


def union_comparison_keys(feeds: Iterable[Feed]) -> Set[str]:
    """Every negative and positive comparison key declared by the feeds."""
    keys: Set[str] = set()
    for feed in feeds:
        keys.update(feed.ncomparisons)
        keys.update(feed.pcomparisons)
    return keys


def article_properties(article: Article, comparisons: Iterable[str]) -> Dict[str, str]:
    properties = {}
    for key in sorted(comparisons):
        value = article.get_field(key)
        if value is not None:
            properties[key] = value
    return properties


def get_inserts_and_updates(
    article_list: List[Article],
    docs: List[StoredDocument],
    comparisons: Iterable[str],
    meta: SyncMeta,
) -> Tuple[List[StoredDocument], List[StoredDocument]]:
    """Split parsed articles into documents to insert and documents to update.

    Articles match stored documents by article id. A matched document is updated
    when the article carries comparison values it does not store yet, or values
    that changed. Stored values for keys the article lacks are kept.
    """
    comparisons = set(comparisons)
    by_id: Dict[str, StoredDocument] = {doc.id: doc for doc in docs}
    to_insert: Dict[str, StoredDocument] = {}
    to_update: Dict[str, StoredDocument] = {}

    for article in article_list:
        properties = article_properties(article, comparisons)

        if article.id in to_insert:
            merged = {**to_insert[article.id].properties, **properties}
            to_insert[article.id] = to_insert[article.id].model_copy(update={"properties": merged})
            continue

        existing = to_update.get(article.id) or by_id.get(article.id)
        if existing is None:
            to_insert[article.id] = StoredDocument(
                id=article.id,
                feed_url=meta.feed_url,
                schedule_name=meta.schedule_name,
                properties=properties,
            )
            continue

        merged = {**existing.properties, **properties}
        if merged != existing.properties:
            to_update[article.id] = existing.model_copy(update={"properties": merged})

    return list(to_insert.values()), list(to_update.values())
