from .health import router as health_router  # noqa: F401
from .markups import router as markups_router  # noqa: F401
from .requests import router as requests_router  # noqa: F401
