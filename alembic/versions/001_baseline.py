"""Baseline: users, articles, engagement, notifications, achievements, outbox.

Revision ID: 001_baseline
Revises: None
Create Date: 2026-10-19
"""

from collections.abc import Sequence

from alembic import op

revision: str = "001_baseline"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    # --- Users & follows ---
    op.execute("""
        CREATE TABLE IF NOT EXISTS users (
            id BIGSERIAL PRIMARY KEY,
            email VARCHAR(320) UNIQUE NOT NULL,
            name VARCHAR(128),
            image TEXT,
            role VARCHAR(16) NOT NULL DEFAULT 'USER',
            total_claps INTEGER NOT NULL DEFAULT 0,
            total_reads INTEGER NOT NULL DEFAULT 0,
            created_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
        )
    """)
    op.execute("""
        CREATE TABLE IF NOT EXISTS follows (
            id BIGSERIAL PRIMARY KEY,
            follower_id BIGINT NOT NULL REFERENCES users(id) ON DELETE CASCADE,
            following_id BIGINT NOT NULL REFERENCES users(id) ON DELETE CASCADE,
            created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            CONSTRAINT follows_follower_following_key UNIQUE (follower_id, following_id),
            CONSTRAINT follows_no_self_follow CHECK (follower_id <> following_id)
        )
    """)
    op.execute("CREATE INDEX IF NOT EXISTS idx_follows_following ON follows(following_id)")

    # --- Articles ---
    op.execute("""
        CREATE TABLE IF NOT EXISTS articles (
            id BIGSERIAL PRIMARY KEY,
            author_id BIGINT NOT NULL REFERENCES users(id) ON DELETE CASCADE,
            title VARCHAR(256) NOT NULL,
            content TEXT NOT NULL,
            excerpt TEXT,
            slug VARCHAR(320) UNIQUE NOT NULL,
            status VARCHAR(16) NOT NULL DEFAULT 'DRAFT',
            views INTEGER NOT NULL DEFAULT 0,
            cover_image TEXT,
            created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            updated_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            published_at TIMESTAMPTZ,
            deleted_at TIMESTAMPTZ
        )
    """)
    op.execute("""
        CREATE INDEX IF NOT EXISTS idx_articles_author_status
        ON articles(author_id, status) WHERE deleted_at IS NULL
    """)
    op.execute("""
        CREATE TABLE IF NOT EXISTS article_revisions (
            id BIGSERIAL PRIMARY KEY,
            article_id BIGINT NOT NULL REFERENCES articles(id) ON DELETE CASCADE,
            version INTEGER NOT NULL,
            title VARCHAR(256) NOT NULL,
            content TEXT NOT NULL,
            excerpt TEXT,
            change_log TEXT,
            created_by BIGINT REFERENCES users(id) ON DELETE SET NULL,
            created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            CONSTRAINT article_revisions_article_version_key UNIQUE (article_id, version)
        )
    """)
    op.execute("CREATE INDEX IF NOT EXISTS ix_article_revisions_article_id ON article_revisions(article_id)")
    op.execute("""
        CREATE TABLE IF NOT EXISTS article_analytics (
            article_id BIGINT PRIMARY KEY REFERENCES articles(id) ON DELETE CASCADE,
            unique_views INTEGER NOT NULL DEFAULT 0,
            average_read_time DOUBLE PRECISION NOT NULL DEFAULT 0,
            completion_rate DOUBLE PRECISION NOT NULL DEFAULT 0,
            total_claps INTEGER NOT NULL DEFAULT 0,
            total_comments INTEGER NOT NULL DEFAULT 0,
            total_reads INTEGER NOT NULL DEFAULT 0,
            referral_sources JSONB NOT NULL DEFAULT '{}',
            device_breakdown JSONB NOT NULL DEFAULT '{}',
            geographic_data JSONB NOT NULL DEFAULT '{}',
            updated_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
        )
    """)

    # --- Engagement ---
    op.execute("""
        CREATE TABLE IF NOT EXISTS claps (
            id BIGSERIAL PRIMARY KEY,
            article_id BIGINT NOT NULL REFERENCES articles(id) ON DELETE CASCADE,
            user_id BIGINT NOT NULL REFERENCES users(id) ON DELETE CASCADE,
            count INTEGER NOT NULL DEFAULT 1,
            created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            deleted_at TIMESTAMPTZ,
            CONSTRAINT claps_article_user_key UNIQUE (article_id, user_id)
        )
    """)
    op.execute("""
        CREATE TABLE IF NOT EXISTS comments (
            id BIGSERIAL PRIMARY KEY,
            article_id BIGINT NOT NULL REFERENCES articles(id) ON DELETE CASCADE,
            author_id BIGINT NOT NULL REFERENCES users(id) ON DELETE CASCADE,
            parent_id BIGINT REFERENCES comments(id) ON DELETE CASCADE,
            content TEXT NOT NULL,
            created_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
        )
    """)
    op.execute("CREATE INDEX IF NOT EXISTS ix_comments_article_id ON comments(article_id)")
    op.execute("""
        CREATE TABLE IF NOT EXISTS bookmarks (
            id BIGSERIAL PRIMARY KEY,
            user_id BIGINT NOT NULL REFERENCES users(id) ON DELETE CASCADE,
            article_id BIGINT NOT NULL REFERENCES articles(id) ON DELETE CASCADE,
            settings JSONB NOT NULL DEFAULT '{}',
            created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            deleted_at TIMESTAMPTZ,
            CONSTRAINT bookmarks_user_article_key UNIQUE (user_id, article_id)
        )
    """)
    op.execute("""
        CREATE TABLE IF NOT EXISTS read_history (
            id BIGSERIAL PRIMARY KEY,
            user_id BIGINT NOT NULL REFERENCES users(id) ON DELETE CASCADE,
            article_id BIGINT NOT NULL REFERENCES articles(id) ON DELETE CASCADE,
            read_time INTEGER NOT NULL DEFAULT 0,
            progress DOUBLE PRECISION NOT NULL DEFAULT 0,
            completed BOOLEAN NOT NULL DEFAULT false,
            created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            updated_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            CONSTRAINT read_history_user_article_key UNIQUE (user_id, article_id)
        )
    """)
    op.execute("CREATE INDEX IF NOT EXISTS ix_read_history_article_id ON read_history(article_id)")

    # --- Notifications ---
    op.execute("""
        CREATE TABLE IF NOT EXISTS notifications (
            id BIGSERIAL PRIMARY KEY,
            user_id BIGINT NOT NULL REFERENCES users(id) ON DELETE CASCADE,
            type VARCHAR(32) NOT NULL,
            title VARCHAR(256) NOT NULL,
            message TEXT NOT NULL,
            link VARCHAR(512),
            is_read BOOLEAN NOT NULL DEFAULT false,
            read_at TIMESTAMPTZ,
            metadata JSONB NOT NULL DEFAULT '{}',
            created_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
        )
    """)
    op.execute("""
        CREATE INDEX IF NOT EXISTS idx_notifications_user_created
        ON notifications(user_id, created_at DESC)
    """)

    # --- Achievements ---
    op.execute("""
        CREATE TABLE IF NOT EXISTS achievements (
            id SERIAL PRIMARY KEY,
            name VARCHAR(128) UNIQUE NOT NULL,
            description TEXT NOT NULL,
            badge VARCHAR(256) NOT NULL,
            criteria JSONB NOT NULL,
            points INTEGER NOT NULL DEFAULT 0,
            created_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
        )
    """)
    op.execute("""
        CREATE TABLE IF NOT EXISTS user_achievements (
            id BIGSERIAL PRIMARY KEY,
            user_id BIGINT NOT NULL REFERENCES users(id) ON DELETE CASCADE,
            achievement_id INTEGER NOT NULL REFERENCES achievements(id) ON DELETE CASCADE,
            awarded_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            CONSTRAINT user_achievements_user_achievement_key UNIQUE (user_id, achievement_id)
        )
    """)

    # --- Side-effect outbox ---
    op.execute("""
        CREATE TABLE IF NOT EXISTS outbox_events (
            id BIGSERIAL PRIMARY KEY,
            event_type VARCHAR(64) NOT NULL,
            payload JSONB NOT NULL DEFAULT '{}',
            created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            dispatched_at TIMESTAMPTZ,
            attempts INTEGER NOT NULL DEFAULT 0,
            last_error TEXT
        )
    """)
    op.execute("CREATE INDEX IF NOT EXISTS ix_outbox_events_created_at ON outbox_events(created_at)")
    op.execute("""
        CREATE INDEX IF NOT EXISTS idx_outbox_events_pending
        ON outbox_events(created_at) WHERE dispatched_at IS NULL
    """)


def downgrade() -> None:
    for table in (
        "outbox_events",
        "user_achievements",
        "achievements",
        "notifications",
        "read_history",
        "bookmarks",
        "comments",
        "claps",
        "article_analytics",
        "article_revisions",
        "articles",
        "follows",
        "users",
    ):
        op.execute(f"DROP TABLE IF EXISTS {table} CASCADE")
