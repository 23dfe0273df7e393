"""Database base class and model imports."""
from sqlalchemy.orm import declarative_base

Base = declarative_base()

# Import all models here for Alembic to detect them
from naijapulse.db.models.poll import Poll  # noqa: F401, E402
from naijapulse.db.models.vote import Vote  # noqa: F401, E402
from naijapulse.db.models.comment import Comment  # noqa: F401, E402
from naijapulse.db.models.report import Report  # noqa: F401, E402
from naijapulse.db.models.profile import Profile  # noqa: F401, E402
