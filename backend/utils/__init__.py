from sqlalchemy.orm import class_mapper
from .age_utils import calculate_age

def sqlalchemy_to_dict(obj):
    """Convert a SQLAlchemy object to a dictionary."""
    if not obj:
        return None
    mapper = class_mapper(obj.__class__)
    result = {}
    for c in mapper.columns:
        value = getattr(obj, c.key)
        # Convert date/datetime objects to ISO format strings
        if hasattr(value, 'isoformat'):
            value = value.isoformat()
        # Convert Decimal objects to floats
        elif hasattr(value, 'normalize') and hasattr(value, 'from_float'):
            value = float(value)
        # Convert enum types to strings
        elif hasattr(value, 'name') and hasattr(value, 'value'):
            value = value.name
        result[c.key] = value
    return result

__all__ = ['calculate_age', 'sqlalchemy_to_dict']
