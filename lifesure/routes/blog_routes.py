from fastapi import APIRouter, Depends, Query, status
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from lifesure.auth.dependencies import RequestContext, get_db, require_agent
from lifesure.core import config
from lifesure.core.errors import NotFound, ValidationError
from lifesure.database import utcnow
from lifesure.models.blog import Blog
from lifesure.routes.common import paginate, search_filter, store_errors
from lifesure.schemas import BlogResponse, CamelModel, dump, dump_all

router = APIRouter(tags=['blogs'])

NOT_OWNED_MESSAGE = 'Blog not found or access denied'


class BlogRequest(CamelModel):
    title: str | None = None
    content: str | None = None


def find_owned_blog(db: Session, blog_id: int, author_id: str) -> Blog:
    blog = db.query(Blog).filter(Blog.id == blog_id, Blog.author_id == author_id).first()
    if blog is None:
        raise NotFound(NOT_OWNED_MESSAGE)
    return blog


@router.get('/blogs')
def list_blogs(
    author_id: str | None = Query(default=None, alias='authorId'),
    search: str | None = Query(default=None),
    page: int = Query(default=1),
    limit: int = Query(default=config.DEFAULT_PAGE_SIZE),
    db: Session = Depends(get_db),
):
    with store_errors(db, 'Failed to fetch blogs'):
        query = db.query(Blog)
        if author_id:
            query = query.filter(Blog.author_id == author_id)

        matches = search_filter(search, Blog.title, Blog.content)
        if matches is not None:
            query = query.filter(matches)

        result = paginate(query.order_by(Blog.created_at.desc(), Blog.id.desc()), page, limit)

    return {'success': True, 'blogs': dump_all(BlogResponse, result.items), 'pagination': result.summary()}


@router.get('/blogs/{blog_id}')
def get_blog(blog_id: int, db: Session = Depends(get_db)):
    with store_errors(db, 'Failed to fetch blog'):
        blog = db.query(Blog).filter(Blog.id == blog_id).first()
    if blog is None:
        raise NotFound('Blog not found')
    return {'success': True, 'blog': dump(BlogResponse, blog)}


@router.post('/agent/blogs')
def create_blog(
    data: BlogRequest,
    ctx: RequestContext = Depends(require_agent),
    db: Session = Depends(get_db),
):
    if not data.title or not data.content:
        raise ValidationError('Title and content are required')

    now = utcnow()
    blog = Blog(
        title=data.title,
        content=data.content,
        author_id=ctx.uid,
        author_name=ctx.user.display_name or ctx.email,
        author_email=ctx.email,
        publish_date=now,
        created_at=now,
        updated_at=now,
    )
    with store_errors(db, 'Failed to create blog'):
        db.add(blog)
        db.commit()
        db.refresh(blog)

    return JSONResponse(
        status_code=status.HTTP_201_CREATED,
        content={'success': True, 'message': 'Blog created successfully', 'blog': dump(BlogResponse, blog)},
    )


@router.get('/agent/blogs')
def list_own_blogs(
    ctx: RequestContext = Depends(require_agent),
    db: Session = Depends(get_db),
):
    with store_errors(db, 'Failed to fetch agent blogs'):
        blogs = (
            db.query(Blog)
            .filter(Blog.author_id == ctx.uid)
            .order_by(Blog.created_at.desc(), Blog.id.desc())
            .all()
        )
    return {'success': True, 'blogs': dump_all(BlogResponse, blogs)}


@router.put('/agent/blogs/{blog_id}')
def update_blog(
    blog_id: int,
    data: BlogRequest,
    ctx: RequestContext = Depends(require_agent),
    db: Session = Depends(get_db),
):
    with store_errors(db, 'Failed to update blog'):
        blog = find_owned_blog(db, blog_id, ctx.uid)
        if data.title:
            blog.title = data.title
        if data.content:
            blog.content = data.content
        blog.updated_at = utcnow()
        db.commit()
        db.refresh(blog)

    return {'success': True, 'message': 'Blog updated successfully', 'blog': dump(BlogResponse, blog)}


@router.delete('/agent/blogs/{blog_id}')
def delete_blog(
    blog_id: int,
    ctx: RequestContext = Depends(require_agent),
    db: Session = Depends(get_db),
):
    with store_errors(db, 'Failed to delete blog'):
        blog = find_owned_blog(db, blog_id, ctx.uid)
        db.delete(blog)
        db.commit()

    return {'success': True, 'message': 'Blog deleted successfully'}
