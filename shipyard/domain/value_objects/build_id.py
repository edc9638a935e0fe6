from dataclasses import dataclass


@dataclass(frozen=True, order=True)
class BuildId:
    """
    Value Object representing the monotonically increasing number of a build.
    """
    value: int

    def __post_init__(self):
        if isinstance(self.value, bool) or not isinstance(self.value, int):
            raise TypeError(f"Build ID must be an int, got {type(self.value).__name__}")
        if self.value < 1:
            raise ValueError(f"Build ID must be positive, got {self.value}")

    def next(self) -> "BuildId":
        return BuildId(self.value + 1)

    @staticmethod
    def parse(raw: str) -> "BuildId":
        try:
            return BuildId(int(raw.strip()))
        except ValueError:
            raise ValueError(f"Invalid build ID: {raw!r}") from None

    def __str__(self):
        return str(self.value)
