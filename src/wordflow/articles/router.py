"""Article API endpoints: CRUD plus revision history."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from wordflow.articles import revision_service
from wordflow.articles.schemas import (
    ArticleListResponse,
    ArticleResponse,
    AuthorResponse,
    CreateArticleRequest,
    EditWithRevisionRequest,
    RestoreRevisionRequest,
    RestoreRevisionResponse,
    RevisionListResponse,
    RevisionResponse,
    UpdateArticleRequest,
)
from wordflow.articles.service import (
    create_article,
    delete_article,
    get_article,
    get_article_by_slug,
    get_owned_article,
    list_published_articles,
    list_user_articles,
    update_article,
)
from wordflow.auth.dependencies import get_current_user
from wordflow.database import get_session
from wordflow.db.models import Article, ArticleRevision, User
from wordflow.events.outbox import commit_and_dispatch

router = APIRouter(prefix="/api/v1", tags=["Articles"])


def article_response(article: Article) -> ArticleResponse:
    return ArticleResponse(
        id=article.id,
        title=article.title,
        content=article.content,
        excerpt=article.excerpt,
        slug=article.slug,
        status=article.status,
        views=article.views,
        cover_image=article.cover_image,
        author=AuthorResponse(id=article.author.id, name=article.author.name, image=article.author.image),
        created_at=article.created_at,
        updated_at=article.updated_at,
        published_at=article.published_at,
    )


def _revision_response(revision: ArticleRevision) -> RevisionResponse:
    return RevisionResponse(
        id=revision.id,
        article_id=revision.article_id,
        version=revision.version,
        title=revision.title,
        content=revision.content,
        excerpt=revision.excerpt,
        change_log=revision.change_log,
        created_by=revision.created_by,
        created_at=revision.created_at,
    )


@router.post("/articles", response_model=ArticleResponse, status_code=201)
async def create(
    body: CreateArticleRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> ArticleResponse:
    """Create an article (published by default)."""
    article, event = await create_article(
        db,
        user,
        title=body.title,
        content=body.content,
        excerpt=body.excerpt,
        cover_image=body.cover_image,
        status=body.status,
    )
    await commit_and_dispatch(db, [event])
    return article_response(article)


@router.get("/articles", response_model=ArticleListResponse)
async def list_articles(
    author_id: int | None = Query(None),
    page: int = Query(1, ge=1),
    per_page: int = Query(20, ge=1, le=100),
    db: AsyncSession = Depends(get_session),
) -> ArticleListResponse:
    """List published articles, newest first."""
    articles, total = await list_published_articles(db, author_id, page, per_page)
    return ArticleListResponse(
        articles=[article_response(a) for a in articles],
        total=total,
        page=page,
        per_page=per_page,
    )


@router.get("/articles/me", response_model=ArticleListResponse)
async def list_my_articles(
    status: str | None = Query(None),
    page: int = Query(1, ge=1),
    per_page: int = Query(20, ge=1, le=100),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> ArticleListResponse:
    """List the caller's own articles in any status."""
    articles, total = await list_user_articles(db, user, status, page, per_page)
    return ArticleListResponse(
        articles=[article_response(a) for a in articles],
        total=total,
        page=page,
        per_page=per_page,
    )


@router.get("/articles/slug/{slug}", response_model=ArticleResponse)
async def get_by_slug(slug: str, db: AsyncSession = Depends(get_session)) -> ArticleResponse:
    article = await get_article_by_slug(db, slug)
    return article_response(article)


@router.get("/articles/{article_id}", response_model=ArticleResponse)
async def get_one(article_id: int, db: AsyncSession = Depends(get_session)) -> ArticleResponse:
    article = await get_article(db, article_id)
    return article_response(article)


@router.put("/articles/{article_id}", response_model=ArticleResponse)
async def update(
    article_id: int,
    body: UpdateArticleRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> ArticleResponse:
    """Update an article. Title/content/excerpt changes are versioned."""
    article, event = await update_article(
        db,
        user,
        article_id,
        title=body.title,
        content=body.content,
        excerpt=body.excerpt,
        cover_image=body.cover_image,
        status=body.status,
        change_log=body.change_log,
    )
    await commit_and_dispatch(db, [event])
    return article_response(article)


@router.delete("/articles/{article_id}", status_code=200)
async def delete(
    article_id: int,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> dict:
    await delete_article(db, user, article_id)
    await db.commit()
    return {"detail": "Article deleted"}


# --- Revisions ---


@router.get("/articles/{article_id}/revisions", response_model=RevisionListResponse)
async def list_revisions(
    article_id: int,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> RevisionListResponse:
    """Revision history, newest version first (author or admin)."""
    article = await get_article(db, article_id)
    revision_service.check_history_access(article, user)
    revisions = await revision_service.list_revisions(db, article)
    return RevisionListResponse(revisions=[_revision_response(r) for r in revisions])


@router.post("/articles/{article_id}/revisions", response_model=RevisionResponse, status_code=201)
async def edit_with_revision(
    article_id: int,
    body: EditWithRevisionRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> RevisionResponse:
    """Overwrite the article text, keeping the previous text as a new revision."""
    article = await get_owned_article(db, user, article_id)
    revision = await revision_service.apply_edit(
        db,
        article,
        title=body.title,
        content=body.content,
        excerpt=body.excerpt,
        change_log=body.change_log,
        editor_id=user.id,
    )
    await db.commit()
    return _revision_response(revision)


@router.get("/articles/{article_id}/revisions/{revision_id}", response_model=RevisionResponse)
async def get_revision(
    article_id: int,
    revision_id: int,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> RevisionResponse:
    article = await get_article(db, article_id)
    revision_service.check_history_access(article, user)
    revision = await revision_service.get_revision(db, article, revision_id)
    return _revision_response(revision)


@router.post("/articles/{article_id}/revisions/restore", response_model=RestoreRevisionResponse)
async def restore(
    article_id: int,
    body: RestoreRevisionRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> RestoreRevisionResponse:
    """Restore an earlier revision (author only)."""
    article = await get_owned_article(db, user, article_id)
    before, after = await revision_service.restore_revision(db, article, body.revision_id, actor_id=user.id)
    await db.commit()
    return RestoreRevisionResponse(
        article=article_response(article),
        before=_revision_response(before),
        after=_revision_response(after),
    )
