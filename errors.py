class WeakPoolError(Exception):
    pass


class InvalidObjectError(WeakPoolError, TypeError):
    """raised when an object cannot be tracked by a weak pool"""
    pass
