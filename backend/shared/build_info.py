"""Build metadata reported by /health and /status.

CI sets APP_VERSION and GIT_COMMIT. Otherwise the version comes from the
installed distribution and the commit is reported as "dev".
"""

import os
from importlib.metadata import PackageNotFoundError, version

DISTRIBUTION_NAME = "imposter-server"


def _installed_version() -> str:
    try:
        return version(DISTRIBUTION_NAME)
    except PackageNotFoundError:
        return "dev"


APP_VERSION: str = os.environ.get("APP_VERSION") or _installed_version()
GIT_COMMIT: str = os.environ.get("GIT_COMMIT") or "dev"
