from .action_dispatcher import ActionDispatcher  # noqa: F401
from .approval_session import ApprovalSession  # noqa: F401
from .markup_service import MarkupService  # noqa: F401
from .request_store import RequestStore  # noqa: F401
