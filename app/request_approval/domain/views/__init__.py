from .request_table import TableView  # noqa: F401
