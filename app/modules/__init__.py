"""Domain modules package."""

from app.modules.audit import models as audit_models  # noqa: F401
from app.modules.billing import models as billing_models  # noqa: F401
from app.modules.enrollments import models as enrollments_models  # noqa: F401
from app.modules.freeze import models as freeze_models  # noqa: F401
from app.modules.groups import models as groups_models  # noqa: F401
from app.modules.refunds import models as refunds_models  # noqa: F401
from app.modules.scheduling import models as scheduling_models  # noqa: F401
