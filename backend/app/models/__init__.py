# Models package init: importing it registers every table with Base.metadata
from app.models.user import User
from app.models.blog import Blog

__all__ = ["User", "Blog"]
