"""Classification of driver-level constraint failures."""

from psycopg.errors import CheckViolation, ForeignKeyViolation, NotNullViolation, UniqueViolation
from sqlalchemy.exc import IntegrityError


UNIQUE = "unique"
FOREIGN_KEY = "foreign_key"
CONSTRAINT = "constraint"


def integrity_kind(exc: IntegrityError) -> str:
    """Classify an integrity error by the driver exception it wraps."""
    orig = exc.orig
    if isinstance(orig, UniqueViolation):
        return UNIQUE
    if isinstance(orig, ForeignKeyViolation):
        return FOREIGN_KEY
    if isinstance(orig, (NotNullViolation, CheckViolation)):
        return CONSTRAINT

    # Drivers without typed errors (sqlite) only carry the message
    message = str(orig).lower()
    if "unique" in message:
        return UNIQUE
    if "foreign key" in message:
        return FOREIGN_KEY
    return CONSTRAINT
