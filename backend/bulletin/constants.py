"""API route configuration."""

# Base prefix for all API routes
API_PREFIX = "/api"

# Resource prefixes (relative to API_PREFIX)
ARTICLES_PREFIX = "/articles"
ARTICLE_COMMENTS_PREFIX = "/article-comments"
SYSTEM_PREFIX = "/system"

# Collection rels used in ``_embedded`` / ``_links`` of HAL documents
ARTICLES_REL = "articles"
ARTICLE_COMMENTS_REL = "article_comments"

HAL_MEDIA_TYPE = "application/hal+json"
