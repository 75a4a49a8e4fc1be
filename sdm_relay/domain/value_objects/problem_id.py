from dataclasses import dataclass

@dataclass(frozen=True)
class ProblemId:
    """
    Value Object representing the monitoring tool's problem identifier.
    """
    value: str

    def __post_init__(self):
        if not self.value or not self.value.strip():
            raise ValueError("Problem ID cannot be empty")

    def __str__(self):
        return self.value
