"""Basic sqla-lazyloads usage examples.

Demonstrates initialization, root contexts, nested lazy contexts, dedup and
compact views, and handing a context's records to a batch loader.

NOTE: This file is illustrative: it won't run standalone
without a database and seeded data.
"""

from __future__ import annotations

import sqlalchemy as sa
from sqlalchemy import orm
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine

from sqla_lazyloads import Context, ContextBuilder, get_node, init_config, init_node, prepare

from .models import Base, Comment, Post, User


# ── 1. Initialize once at startup ────────────────────────────────────

engine = create_async_engine("sqlite+aiosqlite:///:memory:")


async def setup() -> None:
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    # relationship graph used to validate declared load paths
    init_node(get_node(Base))
    init_config(auto_preload=False)


# ── 2. Root context for a query result ──────────────────────────────


async def load_users(session: AsyncSession) -> Context:
    query = sa.select(User).options(orm.selectinload(User.posts), orm.selectinload(User.roles))
    users = (await session.execute(query)).scalars().all()

    # declare what is known to be needed below the users
    return Context.root(users, "posts.comments", "roles", model=User)


# ── 3. Nested context when an association is traversed ──────────────


def posts_context(users: Context) -> Context:
    posts = prepare(users, "posts")
    # posts.records: every already loaded post of every user, lazily
    # posts.association_tree: {"comments": {}}
    return posts


# ── 4. Feeding a batch loader ───────────────────────────────────────


async def preload_comments(session: AsyncSession, posts: Context) -> list[Post]:
    """Load comments for every post in the context with one query."""
    if not posts.records:
        return []

    ids = [post.id for post in posts.records]
    query = sa.select(Post).where(Post.id.in_(ids)).options(orm.selectinload(Post.comments))
    return list((await session.execute(query)).scalars().all())


# ── 5. Dedup and compact ────────────────────────────────────────────


def distinct_roles(users: Context) -> int:
    roles = prepare(users, "roles").records
    roles.uniq()  # type: ignore[union-attr]
    return len(roles)  # type: ignore[arg-type]


def authors_with_posts(posts: Context) -> int:
    authors = prepare(posts, "author").records
    # compact() drops missing authors; dedup has to be applied afterwards
    present = authors.compact()  # type: ignore[union-attr]
    present.uniq()
    return present.size()


# ── 6. Explicit collaborators ───────────────────────────────────────


def comments_context(posts: Context) -> Context:
    builder = ContextBuilder(auto_preload=lambda: False)
    comments = builder.prepare(posts, "comments")
    assert all(isinstance(comment, Comment) for comment in comments.records)
    return comments
