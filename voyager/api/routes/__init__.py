from voyager.api.routes.auth import router as auth_router
from voyager.api.routes.blog import router as blog_router
from voyager.api.routes.email import router as email_router
from voyager.api.routes.media import router as media_router
from voyager.api.routes.team import router as team_router

__all__ = ["auth_router", "blog_router", "email_router", "media_router", "team_router"]
