"""Domain modules package."""

from mentorhub.modules.availability import models as availability_models  # noqa: F401
from mentorhub.modules.identity import models as identity_models  # noqa: F401
from mentorhub.modules.mentors import models as mentors_models  # noqa: F401
from mentorhub.modules.notifications import models as notifications_models  # noqa: F401
from mentorhub.modules.payments import models as payments_models  # noqa: F401
from mentorhub.modules.sessions import models as sessions_models  # noqa: F401
from mentorhub.modules.video import models as video_models  # noqa: F401
