from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from devforum.api.v1 import auth, user
from devforum.core.config import settings
from devforum.core.exceptions import register_exception_handlers
from devforum.core.logging import setup_logging
from devforum.db.base import Base
from devforum.db.session import engine, ensure_database
from devforum.routers import post
from devforum.routers import comment
from devforum.routers import like
from devforum.routers import notifications
from devforum.routers import reports
from devforum.routers import admin

setup_logging()
ensure_database()
Base.metadata.create_all(bind=engine)

app = FastAPI(title=settings.APP_NAME)

app.add_middleware(
    CORSMiddleware,
    allow_origins=[settings.FRONTEND_URL],
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS", "PATCH"],
    allow_headers=["*"],
)
register_exception_handlers(app)

app.include_router(auth.router, prefix="/api/auth", tags=["Auth"])
app.include_router(user.router, prefix="/api/users", tags=["Users"])
app.include_router(post.router, prefix="/api/posts", tags=["Posts"])
app.include_router(comment.router, prefix="/api/comments", tags=["Comments"])
app.include_router(like.router, prefix="/api", tags=["Reactions"])
app.include_router(notifications.router, prefix="/api/notifications", tags=["Notifications"])
app.include_router(reports.router, prefix="/api/reports", tags=["Reports"])
app.include_router(admin.router, prefix="/api/admin", tags=["Admin"])


@app.get("/health", tags=["Health"])
def health_check():
    return {"status": "ok"}
