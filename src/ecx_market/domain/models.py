"""Market-side escrow bookkeeping and the settlement report."""
import copy
from collections import defaultdict
from dataclasses import dataclass, field
from typing import Any

from src.ecx_common.errors import ReplayPoolExhaustedError


@dataclass
class SettlementReport:
    """Everything one validate_project call moved.

    Credits are whole credits; collateral, escrow and cash are native
    sub-units. retained is what stays in the treasury out of the project's
    own pool; it is never negative.
    """

    project_id: int
    seller: str
    is_valid: bool
    actual_amount: int
    sold: int
    staked_credits: int
    collateral: int
    escrowed_payments: int
    buyer_credits: dict[str, int] = field(default_factory=dict)
    buyer_shortfall: dict[str, int] = field(default_factory=dict)
    remainder: int = 0
    seller_credits: int = 0
    bonus: int = 0
    seller_payout: int = 0
    compensation_paid: int = 0
    retained: int = 0

    @property
    def total_buyer_credits(self) -> int:
        return sum(self.buyer_credits.values())

    @property
    def total_shortfall(self) -> int:
        return sum(self.buyer_shortfall.values())


class StakeBook:
    """Buyer stakes, buyer sets, replay pools, seller project lists, escrow.

    Keys are (address, project_id). The buyer list per project keeps first-
    purchase order and never holds duplicates.
    """

    def __init__(self) -> None:
        self._stakes: dict[tuple[str, int], int] = defaultdict(int)
        self._buyers: dict[int, list[str]] = defaultdict(list)
        self._replay: dict[tuple[str, int], int] = defaultdict(int)
        self._seller_projects: dict[str, list[int]] = defaultdict(list)
        self._escrow: dict[int, int] = defaultdict(int)

    # --- buyer stakes ---

    def stake(self, buyer: str, project_id: int) -> int:
        return self._stakes.get((buyer, project_id), 0)

    def add_stake(self, buyer: str, project_id: int, amount: int) -> None:
        self._stakes[(buyer, project_id)] += amount
        if buyer not in self._buyers[project_id]:
            self._buyers[project_id].append(buyer)

    def buyers(self, project_id: int) -> list[str]:
        return list(self._buyers.get(project_id, []))

    def stakes_for(self, project_id: int) -> dict[str, int]:
        return {buyer: self.stake(buyer, project_id) for buyer in self.buyers(project_id)}

    def total_stakes(self, project_id: int) -> int:
        return sum(self.stakes_for(project_id).values())

    def clear_project(self, project_id: int) -> None:
        """Zero every stake and empty the buyer set after settlement."""
        for buyer in self._buyers.pop(project_id, []):
            self._stakes.pop((buyer, project_id), None)

    # --- escrowed buyer payments ---

    def escrow(self, project_id: int) -> int:
        return self._escrow.get(project_id, 0)

    def add_escrow(self, project_id: int, amount: int) -> None:
        self._escrow[project_id] += amount

    def release_escrow(self, project_id: int) -> int:
        return self._escrow.pop(project_id, 0)

    # --- replay pools (resale after settlement) ---

    def replay_pool(self, seller: str, project_id: int) -> int:
        return self._replay.get((seller, project_id), 0)

    def add_replay(self, seller: str, project_id: int, amount: int) -> None:
        self._replay[(seller, project_id)] += amount

    def take_replay(self, seller: str, project_id: int, amount: int) -> None:
        available = self.replay_pool(seller, project_id)
        if available < amount:
            raise ReplayPoolExhaustedError(seller, project_id, amount, available)
        self._replay[(seller, project_id)] = available - amount

    # --- seller project lists ---

    def seller_projects(self, seller: str) -> list[int]:
        return list(self._seller_projects.get(seller, []))

    def add_seller_project(self, seller: str, project_id: int) -> None:
        if project_id not in self._seller_projects[seller]:
            self._seller_projects[seller].append(project_id)

    # --- Snapshotable ---

    def snapshot(self) -> Any:
        return copy.deepcopy(
            (
                dict(self._stakes),
                dict(self._buyers),
                dict(self._replay),
                dict(self._seller_projects),
                dict(self._escrow),
            )
        )

    def restore(self, state: Any) -> None:
        stakes, buyers, replay, seller_projects, escrow = state
        self._stakes = defaultdict(int, stakes)
        self._buyers = defaultdict(list, buyers)
        self._replay = defaultdict(int, replay)
        self._seller_projects = defaultdict(list, seller_projects)
        self._escrow = defaultdict(int, escrow)
