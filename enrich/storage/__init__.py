"""Article storage backends."""

from .article_store import ArticleStore, JsonArticleStore, is_valid_id

__all__ = ["ArticleStore", "JsonArticleStore", "is_valid_id"]
