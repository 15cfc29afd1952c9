"""Package version and default user agent"""

import os

__version__ = "0.1.0"


def user_agent() -> str:
    """User agent from MIDAZ_USER_AGENT, or the package default"""
    return os.getenv("MIDAZ_USER_AGENT") or f"midaz-client-python/{__version__}"
