# Import every model so Base.metadata is complete before create_all
from .base import Base  # noqa: F401
from .user import User  # noqa: F401
