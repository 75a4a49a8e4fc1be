from dataclasses import dataclass, field


@dataclass(frozen=True)
class ServiceDeskCredentials:
    """
    Value Object holding the Service Desk login. The password never shows in repr.
    """
    username: str
    password: str = field(repr=False)

    def __post_init__(self):
        if not self.username:
            raise ValueError("Service Desk username cannot be empty")
