import logging
import os
from typing import Optional

from fastapi import FastAPI, Depends, HTTPException, Request, status, Query
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
import uvicorn

from .db import Base, engine, get_db
from .models import User
from .schemas import (
    AnalyticsOut,
    FeedPage,
    LikeToggleResult,
    LoginIn,
    OkOut,
    PostCreate,
    PostOut,
    PostUpdate,
    SessionOut,
    TokenOut,
    UserCreate,
    UserOut,
)
from .auth import (
    AuthContext,
    create_access_token,
    get_auth_context_optional,
    get_auth_context_required,
    hash_password,
    verify_password,
)
from .errors import ServiceError
from . import analytics, feed, likes, posts


logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(title="Publisher Platform")


@app.on_event("startup")
async def on_startup():
    Base.metadata.create_all(bind=engine)


@app.exception_handler(ServiceError)
async def service_error_handler(request: Request, exc: ServiceError):
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.detail})


@app.exception_handler(SQLAlchemyError)
async def database_error_handler(request: Request, exc: SQLAlchemyError):
    logger.exception("Database error while handling %s %s", request.method, request.url.path)
    return JSONResponse(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, content={"detail": "Database error"})


# Accounts

@app.post("/register", response_model=UserOut)
def register(user_in: UserCreate, db: Session = Depends(get_db)):
    if db.query(User).filter(User.email == user_in.email).first():
        raise HTTPException(status_code=400, detail="Email already in use")
    user = User(
        name=user_in.name,
        email=user_in.email,
        role=user_in.role,
        password_hash=hash_password(user_in.password),
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    logger.info("Registered user %s as %s", user.id, user.role.value)
    return user


@app.post("/login", response_model=TokenOut)
def login(credentials: LoginIn, db: Session = Depends(get_db)):
    user = db.query(User).filter(User.email == credentials.email).first()
    if not user or not verify_password(credentials.password, user.password_hash):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid credentials")
    return TokenOut(access_token=create_access_token(user))


@app.get("/me", response_model=SessionOut)
def me(ctx: AuthContext = Depends(get_auth_context_required)):
    return SessionOut(user_id=ctx.user_id, name=ctx.name, role=ctx.role)


# Posts

@app.get("/posts", response_model=FeedPage)
def public_feed(
    cursor: Optional[int] = Query(None, description="Id of the last post of the previous page"),
    limit: int = Query(feed.DEFAULT_LIMIT, ge=1, le=feed.MAX_LIMIT),
    q: Optional[str] = Query(None, max_length=200),
    ctx: AuthContext | None = Depends(get_auth_context_optional),
    db: Session = Depends(get_db),
):
    viewer_id = ctx.user_id if ctx else None
    return feed.query_feed(db, cursor=cursor, limit=limit, search=q, viewer_id=viewer_id)


@app.get("/posts/mine", response_model=list[PostOut])
def my_posts(ctx: AuthContext = Depends(get_auth_context_required), db: Session = Depends(get_db)):
    return posts.list_mine(db, ctx)


@app.get("/posts/analytics", response_model=AnalyticsOut)
def publisher_analytics(
    days: int = Query(analytics.DEFAULT_DAYS, ge=analytics.MIN_DAYS, le=analytics.MAX_DAYS),
    ctx: AuthContext = Depends(get_auth_context_required),
    db: Session = Depends(get_db),
):
    return analytics.compute_analytics(db, ctx, days=days)


@app.post("/posts", response_model=PostOut)
def create_post(data: PostCreate, ctx: AuthContext = Depends(get_auth_context_required), db: Session = Depends(get_db)):
    return posts.create_post(db, ctx, data)


@app.put("/posts/{post_id}", response_model=PostOut)
def update_post(post_id: int, data: PostUpdate, ctx: AuthContext = Depends(get_auth_context_required), db: Session = Depends(get_db)):
    return posts.update_post(db, ctx, post_id, data)


@app.delete("/posts/{post_id}", response_model=OkOut)
def delete_post(post_id: int, ctx: AuthContext = Depends(get_auth_context_required), db: Session = Depends(get_db)):
    return posts.delete_post(db, ctx, post_id)


# Likes

@app.post("/likes/{post_id}/toggle", response_model=LikeToggleResult)
def toggle_like(post_id: int, ctx: AuthContext = Depends(get_auth_context_required), db: Session = Depends(get_db)):
    return likes.toggle_like(db, ctx, post_id)


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "ok", "service": "publisher"}


def run():
    """Serve the app with uvicorn on HOST/PORT from the environment."""
    uvicorn.run(app, host=os.getenv("HOST", "127.0.0.1"), port=int(os.getenv("PORT", "5200")))
