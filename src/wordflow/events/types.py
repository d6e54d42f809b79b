"""Event type names carried on outbox rows."""

CLAP_CREATED = "clap.created"
CLAP_REMOVED = "clap.removed"
COMMENT_CREATED = "comment.created"
READ_RECORDED = "read.recorded"
FOLLOW_CREATED = "follow.created"
ARTICLE_PUBLISHED = "article.published"
