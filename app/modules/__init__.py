"""Domain modules package."""

from app.modules.admin_auth import models as admin_auth_models  # noqa: F401
from app.modules.audit import models as audit_models  # noqa: F401
