"""Default settings for development and tests; production lives in ``settings.production``."""

from .base import *  # noqa: F401,F403
