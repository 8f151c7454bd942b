from .policy import RetryPolicy, RetryState

__all__ = ["RetryPolicy", "RetryState"]
