from dataclasses import dataclass


@dataclass(frozen=True)
class FailedResource:
    """
    Stands in for a resource whose construction failed.

    Carries no capability. The storage selection is the only component that
    looks for it; everything else receives the storage it chose.
    """
    name: str
    reason: str = ""
