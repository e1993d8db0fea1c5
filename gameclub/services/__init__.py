"""
Transactional operations over clubs, queues and rotations.

Every function takes the request's Session first and runs its writes
inside database.atomic(), so a failure at any step leaves no partial
effect behind.
"""

from gameclub.errors import Forbidden
from gameclub.schemas import Identity


def ensure_owner(identity: Identity) -> None:
    if not identity.is_owner:
        raise Forbidden("Only the club owner can do that")
