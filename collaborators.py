# collaborators.py
"""
Domain-data lookups the generator depends on.

The generator only needs two queries: a user by email and the full license
catalog. Both are expressed as small protocols; the in-memory versions back
the command line tool and the tests.
"""

import logging
from typing import Dict, Iterable, List, Optional, Protocol

from errors import UpstreamLookupError
from models import License, User

logger = logging.getLogger(__name__)


class UserDirectory(Protocol):
    def get_by_email(self, email: str) -> Optional[User]:
        """Return the user or None; raise UpstreamLookupError when the lookup itself fails."""
        ...


class LicenseCatalog(Protocol):
    def get_licenses(self) -> List[License]:
        """Return every license known to the catalog; raise UpstreamLookupError on failure."""
        ...


class StaticUserDirectory:
    def __init__(self, users: Iterable[User] = ()):
        self._users: Dict[str, User] = {u.email.lower(): u for u in users}

    def get_by_email(self, email: str) -> Optional[User]:
        return self._users.get(email.lower())


class StaticLicenseCatalog:
    def __init__(self, licenses: Iterable[License] = ()):
        self._licenses = list(licenses)

    def get_licenses(self) -> List[License]:
        return list(self._licenses)


def lookup_user(directory: Optional[UserDirectory], email: str) -> Optional[User]:
    """User for `email`, or None if unknown or the directory is unavailable."""
    if directory is None:
        return None
    try:
        return directory.get_by_email(email)
    except UpstreamLookupError as e:
        logger.warning("User lookup failed for %s, using placeholder: %s", email, e)
        return None
