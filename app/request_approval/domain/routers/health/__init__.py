from .endpoints import router  # noqa: F401
