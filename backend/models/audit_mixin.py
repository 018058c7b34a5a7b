from sqlalchemy import Column, DateTime, String
from datetime import datetime
import pytz

import config


def now_local():
    return datetime.now(pytz.timezone(config.APP_TIMEZONE))


class TimestampMixin:
    """Mixin that provides created/updated timestamps and user info."""
    # Timezone-aware timestamps in the pharmacy's business timezone.
    created_at = Column(DateTime(timezone=True), default=now_local)
    updated_at = Column(DateTime(timezone=True), onupdate=now_local)
    created_by = Column(String, nullable=True)
    updated_by = Column(String, nullable=True)
