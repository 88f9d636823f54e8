import dataclasses


@dataclasses.dataclass(frozen=True)
class Destination:
    bucket: str
    key: str
