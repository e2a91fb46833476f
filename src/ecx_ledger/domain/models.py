"""Domain models for ecx_ledger — pure dataclasses, no business logic."""

from dataclasses import dataclass

from src.ecx_common.enums import ProjectState


@dataclass
class ProjectRecord:
    id: int
    owner: str
    supply: int          # credits the project can deliver (resaleable after settlement)
    listed: int = 0      # credits put up for sale
    sold: int = 0        # credits bought against the listing
    state: ProjectState = ProjectState.ONGOING

    @property
    def available(self) -> int:
        return max(self.supply - self.sold, 0)
