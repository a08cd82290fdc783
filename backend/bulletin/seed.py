"""Deterministic sample data for local development and tests.

Usage:
    bulletin-seed --articles 100 --comments 3
"""

import argparse
from typing import List

from sqlalchemy.orm import Session

from bulletin.auditing.context import acting_as
from bulletin.models.models import Article
from bulletin.models.models import ArticleComment
from bulletin.repositories.articles import ArticleRepository
from bulletin.utils.log import get_logger

log = get_logger(component="seed")

SEED_PRINCIPAL = "seed"
_HASHTAGS = ("#spring", "#python", "#database", "#notice", "#question")


def seed_sample_data(
    db: Session,
    *,
    articles: int = 100,
    comments_per_article: int = 3,
    principal: str = SEED_PRINCIPAL,
) -> List[Article]:
    """Insert *articles* articles with *comments_per_article* comments each.

    Everything is written in a single transaction attributed to *principal*.
    """

    batch = []
    for n in range(1, articles + 1):
        article = Article.of(f"Sample article {n}", f"Body of sample article {n}.", _HASHTAGS[n % len(_HASHTAGS)])
        for c in range(1, comments_per_article + 1):
            # Attached through the relationship; saved by the article's cascade.
            ArticleComment.of(article, f"Comment {c} on article {n}")
        batch.append(article)

    with acting_as(principal):
        saved = ArticleRepository(db).save_all(batch)

    log.info("sample_data_seeded", articles=len(saved), comments=len(saved) * comments_per_article)
    return saved


def main() -> None:
    parser = argparse.ArgumentParser(description="Insert sample articles and comments")
    parser.add_argument("--articles", type=int, default=100)
    parser.add_argument("--comments", type=int, default=3, help="Comments per article")
    parser.add_argument("--principal", default=SEED_PRINCIPAL)
    args = parser.parse_args()

    from bulletin.database import db_session
    from bulletin.database import initialize_database

    initialize_database()
    with db_session() as db:
        seed_sample_data(db, articles=args.articles, comments_per_article=args.comments, principal=args.principal)


if __name__ == "__main__":
    main()
