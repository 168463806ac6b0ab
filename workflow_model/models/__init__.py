"""ORM Models — SQLAlchemy declarative models for identities and workflow entities.

Invariants:
    - All models inherit from Base (db/base.py)
    - All models imported here so string-based relationship() references resolve
      before any query runs
"""

from workflow_model.models.identity import Identity  # noqa: F401
from workflow_model.models.submission import Submission  # noqa: F401
