from .filters import FiltersProvider  # noqa: F401
from .offset import OffsetProvider  # noqa: F401
from .ordering import OrderingProvider  # noqa: F401
