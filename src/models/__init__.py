# Import models here so Alembic can discover them via metadata
from .base import Base  # noqa: F401
from .applicant import Applicant  # noqa: F401
from .audit_log import AuditLog  # noqa: F401
from .country import Country  # noqa: F401
