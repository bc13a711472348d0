"""Stored article documents and pending article staging."""

import uuid
from typing import Dict, Iterable, List, Optional

from psycopg.types.json import Jsonb
from psycopg_pool import AsyncConnectionPool

from ..ingestion.models import NewArticle
from ..models import PendingArticle, StoredDocument


class ArticleStorage:
    """Handle stored documents for dedup and pending article staging.

    Without a pool every operation works against in-memory collections
    supplied by the caller (databaseless mode).
    """

    def __init__(self, pool: Optional[AsyncConnectionPool] = None) -> None:
        """Initialize article storage."""
        self.pool = pool

    async def load_documents(
        self,
        schedule_name: str,
        memory_collections: Optional[Dict[str, List[StoredDocument]]] = None,
    ) -> Dict[str, List[StoredDocument]]:
        """Get every stored document for a schedule, grouped by link."""
        if memory_collections is not None:
            return memory_collections
        if self.pool is None:
            return {}

        documents: Dict[str, List[StoredDocument]] = {}
        async with self.pool.connection() as conn:
            cur = await conn.execute(
                """
                SELECT article_id AS id, feed_url, schedule_name, properties, created_at, updated_at
                FROM articles
                WHERE schedule_name = %s
                """,
                (schedule_name,),
            )
            for row in await cur.fetchall():
                doc = StoredDocument(**row)
                documents.setdefault(doc.feed_url, []).append(doc)
        return documents

    async def insert_documents(
        self,
        documents: List[StoredDocument],
        memory_collection: Optional[List[StoredDocument]] = None,
    ) -> None:
        if not documents:
            return
        if memory_collection is not None:
            memory_collection.extend(documents)
            return

        # Each schedule keeps its own copy of a link's documents
        async with self.pool.connection() as conn:
            async with conn.cursor() as cur:
                await cur.executemany(
                    """
                    INSERT INTO articles (schedule_name, feed_url, article_id, properties)
                    VALUES (%s, %s, %s, %s)
                    ON CONFLICT (schedule_name, feed_url, article_id)
                    DO UPDATE SET properties = EXCLUDED.properties
                    """,
                    [
                        (doc.schedule_name, doc.feed_url, doc.id, Jsonb(doc.properties))
                        for doc in documents
                    ],
                )

    async def update_documents(
        self,
        documents: List[StoredDocument],
        memory_collection: Optional[List[StoredDocument]] = None,
    ) -> None:
        if not documents:
            return
        if memory_collection is not None:
            by_id = {doc.id: doc for doc in documents}
            for index, existing in enumerate(memory_collection):
                if existing.id in by_id:
                    memory_collection[index] = by_id[existing.id]
            return

        async with self.pool.connection() as conn:
            async with conn.cursor() as cur:
                await cur.executemany(
                    """
                    UPDATE articles
                    SET properties = %s
                    WHERE schedule_name = %s AND feed_url = %s AND article_id = %s
                    """,
                    [
                        (Jsonb(doc.properties), doc.schedule_name, doc.feed_url, doc.id)
                        for doc in documents
                    ],
                )

    async def store_pending_article(
        self,
        new_article: NewArticle,
        schedule_name: str,
    ) -> PendingArticle:
        """Stage an article before it is reported for delivery."""
        payload = new_article.article.model_dump(mode="json")
        feed_id = new_article.feed.id

        if self.pool is None:
            return PendingArticle(
                id=uuid.uuid4().hex,
                schedule_name=schedule_name,
                feed_id=feed_id,
                article=payload,
            )

        async with self.pool.connection() as conn:
            cur = await conn.execute(
                """
                INSERT INTO pending_articles (schedule_name, feed_id, article)
                VALUES (%s, %s, %s)
                RETURNING id, created_at
                """,
                (schedule_name, feed_id, Jsonb(payload)),
            )
            row = await cur.fetchone()
        return PendingArticle(
            id=str(row["id"]),
            schedule_name=schedule_name,
            feed_id=feed_id,
            article=payload,
            created_at=row["created_at"],
        )

    async def get_pending_articles(self, schedule_name: str) -> List[PendingArticle]:
        """Staged articles of one schedule whose delivery was never confirmed."""
        if self.pool is None:
            return []
        async with self.pool.connection() as conn:
            cur = await conn.execute(
                """
                SELECT id, schedule_name, feed_id, article, created_at, updated_at
                FROM pending_articles
                WHERE schedule_name = %s
                ORDER BY id
                """,
                (schedule_name,),
            )
            rows = await cur.fetchall()
        return [PendingArticle(**{**row, "id": str(row["id"])}) for row in rows]

    async def delete_pending_articles(self, ids: Iterable[str]) -> None:
        """Drop confirmed pending articles."""
        if self.pool is None:
            return
        ids = [int(i) for i in ids]
        if not ids:
            return
        async with self.pool.connection() as conn:
            await conn.execute("DELETE FROM pending_articles WHERE id = ANY(%s)", (ids,))
