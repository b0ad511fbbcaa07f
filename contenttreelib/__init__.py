"""ContentTreeLib - Content hierarchy mutation engine for course trees.

ContentTreeLib manages e-learning course content stored as a flat
document collection: course > menu/page > article > block > component,
plus one config per course. It inserts, clones, cuts and deletes nodes
while keeping sibling order, course ids and the course's plugin list
consistent.

Usage:
    from contenttreelib.aio import create_engine

    engine = create_engine()
    course, config, page, article, block, component = await engine.insert_recursive(
        created_by='user-1')
"""

__version__ = "0.1.0"

from . import aio
from .errors import (
    ContentTreeError,
    NotFoundError,
    InvalidParentError,
    ValidationFailure,
    CutIllegalError,
    FriendlyIdMissingError,
    FriendlyIdDuplicateError,
    PeerStructureError,
)

__all__ = [
    "__version__",
    "aio",
    "ContentTreeError",
    "NotFoundError",
    "InvalidParentError",
    "ValidationFailure",
    "CutIllegalError",
    "FriendlyIdMissingError",
    "FriendlyIdDuplicateError",
    "PeerStructureError",
]
