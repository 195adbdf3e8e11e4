"""Initial schema: users, accounts, channels, posts, comments, hashtags, moderation, support.

Revision ID: 001_initial_schema
Revises:
Create Date: 2026-10-19
"""

from collections.abc import Sequence

from alembic import op

revision: str = "001_initial_schema"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    # --- Users & linked accounts ---
    op.execute("""
        CREATE TABLE IF NOT EXISTS users (
            id VARCHAR(36) PRIMARY KEY,
            nickname VARCHAR(20) UNIQUE,
            role VARCHAR(16) NOT NULL DEFAULT 'USER',
            status VARCHAR(16) NOT NULL DEFAULT 'ACTIVE',
            created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            updated_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            deleted_at TIMESTAMPTZ
        )
    """)
    op.execute("""
        CREATE TABLE IF NOT EXISTS accounts (
            id VARCHAR(36) PRIMARY KEY,
            user_id VARCHAR(36) NOT NULL REFERENCES users(id) ON DELETE CASCADE,
            provider VARCHAR(16) NOT NULL,
            provider_account_id VARCHAR(255) NOT NULL,
            access_token TEXT,
            refresh_token TEXT,
            expires_at TIMESTAMPTZ,
            profile_name VARCHAR(255),
            profile_image TEXT,
            subscriber_count INTEGER,
            created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            updated_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            CONSTRAINT uq_accounts_provider_account UNIQUE (provider, provider_account_id)
        )
    """)
    op.execute("CREATE INDEX IF NOT EXISTS ix_accounts_user_id ON accounts(user_id)")

    # --- Channels ---
    op.execute("""
        CREATE TABLE IF NOT EXISTS channels (
            id VARCHAR(36) PRIMARY KEY,
            name VARCHAR(100) NOT NULL,
            slug VARCHAR(100) UNIQUE NOT NULL,
            description TEXT,
            min_subscribers INTEGER NOT NULL DEFAULT 0,
            max_subscribers INTEGER,
            provider_only VARCHAR(16),
            is_active BOOLEAN NOT NULL DEFAULT true,
            sort_order INTEGER NOT NULL DEFAULT 0,
            created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            updated_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
        )
    """)
    op.execute("""
        CREATE TABLE IF NOT EXISTS channel_accesses (
            id VARCHAR(36) PRIMARY KEY,
            user_id VARCHAR(36) NOT NULL REFERENCES users(id) ON DELETE CASCADE,
            channel_id VARCHAR(36) NOT NULL REFERENCES channels(id) ON DELETE CASCADE,
            expires_at TIMESTAMPTZ NOT NULL,
            created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            CONSTRAINT uq_channel_accesses_user_channel UNIQUE (user_id, channel_id)
        )
    """)

    # --- Posts ---
    op.execute("""
        CREATE TABLE IF NOT EXISTS posts (
            id VARCHAR(36) PRIMARY KEY,
            author_id VARCHAR(36) NOT NULL REFERENCES users(id) ON DELETE CASCADE,
            channel_id VARCHAR(36) NOT NULL REFERENCES channels(id) ON DELETE CASCADE,
            title VARCHAR(100) NOT NULL,
            content TEXT NOT NULL,
            status VARCHAR(16) NOT NULL DEFAULT 'ACTIVE',
            view_count INTEGER NOT NULL DEFAULT 0,
            like_count INTEGER NOT NULL DEFAULT 0,
            comment_count INTEGER NOT NULL DEFAULT 0,
            created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            updated_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            deleted_at TIMESTAMPTZ
        )
    """)
    op.execute("CREATE INDEX IF NOT EXISTS ix_posts_author_id ON posts(author_id)")
    op.execute("CREATE INDEX IF NOT EXISTS ix_posts_channel_id ON posts(channel_id)")
    op.execute("CREATE INDEX IF NOT EXISTS idx_posts_channel_created ON posts(channel_id, created_at DESC)")
    op.execute("""
        CREATE TABLE IF NOT EXISTS post_images (
            id VARCHAR(36) PRIMARY KEY,
            post_id VARCHAR(36) NOT NULL REFERENCES posts(id) ON DELETE CASCADE,
            url TEXT NOT NULL,
            key VARCHAR(255),
            "order" INTEGER NOT NULL DEFAULT 0
        )
    """)
    op.execute("CREATE INDEX IF NOT EXISTS ix_post_images_post_id ON post_images(post_id)")
    op.execute("""
        CREATE TABLE IF NOT EXISTS post_likes (
            id VARCHAR(36) PRIMARY KEY,
            post_id VARCHAR(36) NOT NULL REFERENCES posts(id) ON DELETE CASCADE,
            user_id VARCHAR(36) NOT NULL REFERENCES users(id) ON DELETE CASCADE,
            created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            CONSTRAINT uq_post_likes_post_user UNIQUE (post_id, user_id)
        )
    """)

    # --- Comments ---
    op.execute("""
        CREATE TABLE IF NOT EXISTS comments (
            id VARCHAR(36) PRIMARY KEY,
            post_id VARCHAR(36) NOT NULL REFERENCES posts(id) ON DELETE CASCADE,
            author_id VARCHAR(36) NOT NULL REFERENCES users(id) ON DELETE CASCADE,
            parent_id VARCHAR(36) REFERENCES comments(id) ON DELETE CASCADE,
            content TEXT NOT NULL,
            image_url TEXT,
            image_key VARCHAR(255),
            status VARCHAR(16) NOT NULL DEFAULT 'ACTIVE',
            like_count INTEGER NOT NULL DEFAULT 0,
            created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            updated_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            deleted_at TIMESTAMPTZ
        )
    """)
    op.execute("CREATE INDEX IF NOT EXISTS ix_comments_post_id ON comments(post_id)")
    op.execute("CREATE INDEX IF NOT EXISTS ix_comments_parent_id ON comments(parent_id)")
    op.execute("""
        CREATE TABLE IF NOT EXISTS comment_likes (
            id VARCHAR(36) PRIMARY KEY,
            comment_id VARCHAR(36) NOT NULL REFERENCES comments(id) ON DELETE CASCADE,
            user_id VARCHAR(36) NOT NULL REFERENCES users(id) ON DELETE CASCADE,
            created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            CONSTRAINT uq_comment_likes_comment_user UNIQUE (comment_id, user_id)
        )
    """)

    # --- Hashtags ---
    op.execute("""
        CREATE TABLE IF NOT EXISTS hashtags (
            id VARCHAR(36) PRIMARY KEY,
            name VARCHAR(50) UNIQUE NOT NULL,
            usage_count INTEGER NOT NULL DEFAULT 0,
            created_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
        )
    """)
    op.execute("CREATE INDEX IF NOT EXISTS idx_hashtags_usage ON hashtags(usage_count DESC)")
    op.execute("""
        CREATE TABLE IF NOT EXISTS post_hashtags (
            id VARCHAR(36) PRIMARY KEY,
            post_id VARCHAR(36) NOT NULL REFERENCES posts(id) ON DELETE CASCADE,
            hashtag_id VARCHAR(36) NOT NULL REFERENCES hashtags(id) ON DELETE CASCADE,
            created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            CONSTRAINT uq_post_hashtags_post_hashtag UNIQUE (post_id, hashtag_id)
        )
    """)
    op.execute("CREATE INDEX IF NOT EXISTS ix_post_hashtags_hashtag_id ON post_hashtags(hashtag_id)")
    op.execute("""
        CREATE TABLE IF NOT EXISTS comment_hashtags (
            id VARCHAR(36) PRIMARY KEY,
            comment_id VARCHAR(36) NOT NULL REFERENCES comments(id) ON DELETE CASCADE,
            hashtag_id VARCHAR(36) NOT NULL REFERENCES hashtags(id) ON DELETE CASCADE,
            created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            CONSTRAINT uq_comment_hashtags_comment_hashtag UNIQUE (comment_id, hashtag_id)
        )
    """)
    op.execute("CREATE INDEX IF NOT EXISTS ix_comment_hashtags_hashtag_id ON comment_hashtags(hashtag_id)")

    # --- Moderation ---
    op.execute("""
        CREATE TABLE IF NOT EXISTS reports (
            id VARCHAR(36) PRIMARY KEY,
            reporter_id VARCHAR(36) NOT NULL REFERENCES users(id) ON DELETE CASCADE,
            target_type VARCHAR(16) NOT NULL,
            target_id VARCHAR(36) NOT NULL,
            post_id VARCHAR(36) REFERENCES posts(id) ON DELETE SET NULL,
            comment_id VARCHAR(36) REFERENCES comments(id) ON DELETE SET NULL,
            target_user_id VARCHAR(36) REFERENCES users(id) ON DELETE SET NULL,
            reason VARCHAR(32) NOT NULL,
            detail TEXT,
            status VARCHAR(16) NOT NULL DEFAULT 'PENDING',
            created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            CONSTRAINT uq_reports_reporter_target UNIQUE (reporter_id, target_type, target_id)
        )
    """)
    op.execute("""
        CREATE TABLE IF NOT EXISTS user_blocks (
            id VARCHAR(36) PRIMARY KEY,
            blocker_id VARCHAR(36) NOT NULL REFERENCES users(id) ON DELETE CASCADE,
            blocked_user_id VARCHAR(36) NOT NULL REFERENCES users(id) ON DELETE CASCADE,
            created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            CONSTRAINT uq_user_blocks_pair UNIQUE (blocker_id, blocked_user_id)
        )
    """)

    # --- Support ---
    op.execute("""
        CREATE TABLE IF NOT EXISTS faqs (
            id VARCHAR(36) PRIMARY KEY,
            category VARCHAR(16) NOT NULL,
            question TEXT NOT NULL,
            answer TEXT NOT NULL,
            sort_order INTEGER NOT NULL DEFAULT 0,
            is_active BOOLEAN NOT NULL DEFAULT true,
            created_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
        )
    """)
    op.execute("""
        CREATE TABLE IF NOT EXISTS inquiries (
            id VARCHAR(36) PRIMARY KEY,
            user_id VARCHAR(36) REFERENCES users(id) ON DELETE SET NULL,
            email VARCHAR(320),
            category VARCHAR(16) NOT NULL,
            title VARCHAR(100) NOT NULL,
            content TEXT NOT NULL,
            status VARCHAR(16) NOT NULL DEFAULT 'PENDING',
            answer TEXT,
            answered_at TIMESTAMPTZ,
            created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            updated_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
        )
    """)
    op.execute("CREATE INDEX IF NOT EXISTS ix_inquiries_user_id ON inquiries(user_id)")


def downgrade() -> None:
    for table in [
        "inquiries",
        "faqs",
        "user_blocks",
        "reports",
        "comment_hashtags",
        "post_hashtags",
        "hashtags",
        "comment_likes",
        "comments",
        "post_likes",
        "post_images",
        "posts",
        "channel_accesses",
        "channels",
        "accounts",
        "users",
    ]:
        op.execute(f"DROP TABLE IF EXISTS {table} CASCADE")
