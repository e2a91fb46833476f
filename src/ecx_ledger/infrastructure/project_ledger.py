"""InMemoryProjectLedger — project counters, state and seller collateral."""
import copy
import logging
from collections import defaultdict
from typing import Any

from src.ecx_common.enums import ProjectState
from src.ecx_common.errors import ProjectNotFoundError, ValidationError
from src.ecx_ledger.domain.models import ProjectRecord

logger = logging.getLogger(__name__)


class InMemoryProjectLedger:
    def __init__(self) -> None:
        self._projects: dict[int, ProjectRecord] = {}
        # (seller, project_id) -> staked collateral in credit units
        self._collateral: dict[tuple[str, int], int] = defaultdict(int)

    def register_project(self, owner: str, supply: int) -> int:
        if supply < 0:
            raise ValidationError(1007, f"Project supply must be >= 0, got {supply}")
        project_id = len(self._projects)
        self._projects[project_id] = ProjectRecord(id=project_id, owner=owner, supply=supply)
        logger.info("Project registered: id=%d owner=%s supply=%d", project_id, owner, supply)
        return project_id

    def get(self, project_id: int) -> ProjectRecord:
        record = self._projects.get(project_id)
        if record is None:
            raise ProjectNotFoundError(project_id)
        return record

    def exists(self, project_id: int) -> bool:
        return project_id in self._projects

    def owned_by(self, project_id: int, address: str) -> bool:
        return self.exists(project_id) and self._projects[project_id].owner == address

    def supply(self, project_id: int) -> int:
        return self.get(project_id).supply

    def sold(self, project_id: int) -> int:
        return self.get(project_id).sold

    def listed(self, project_id: int) -> int:
        return self.get(project_id).listed

    def set_supply(self, project_id: int, amount: int) -> None:
        self.get(project_id).supply = amount

    def set_sold(self, project_id: int, amount: int) -> None:
        self.get(project_id).sold = amount

    def set_listed(self, project_id: int, amount: int) -> None:
        self.get(project_id).listed = amount

    def state(self, project_id: int) -> ProjectState:
        return self.get(project_id).state

    def set_completed(self, project_id: int) -> None:
        self.get(project_id).state = ProjectState.COMPLETED

    def staked_collateral(self, seller: str, project_id: int) -> int:
        return self._collateral.get((seller, project_id), 0)

    def stake_collateral(self, seller: str, project_id: int, amount: int) -> None:
        self._collateral[(seller, project_id)] += amount

    def release_collateral(self, seller: str, project_id: int) -> int:
        """Zero the seller's stake and return what it held."""
        return self._collateral.pop((seller, project_id), 0)

    def snapshot(self) -> Any:
        return copy.deepcopy((self._projects, dict(self._collateral)))

    def restore(self, state: Any) -> None:
        projects, collateral = state
        self._projects = projects
        self._collateral = defaultdict(int, collateral)
