"""Pydantic schemas for request/response validation."""

from .admin import *  # noqa: F403
from .auth import *  # noqa: F403
from .booking import *  # noqa: F403
from .common import *  # noqa: F403
from .flight import *  # noqa: F403
from .flow import *  # noqa: F403
from .health import *  # noqa: F403
from .payment import *  # noqa: F403
