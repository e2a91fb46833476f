"""Collaborator protocols consumed by the pricing and market engines."""
from contextlib import AbstractAsyncContextManager
from typing import Protocol

from src.ecx_common.enums import ProjectState, Role
from src.ecx_common.transaction import Snapshotable


class ProjectLedgerProtocol(Snapshotable, Protocol):
    def exists(self, project_id: int) -> bool: ...

    def owned_by(self, project_id: int, address: str) -> bool: ...

    def supply(self, project_id: int) -> int: ...

    def sold(self, project_id: int) -> int: ...

    def listed(self, project_id: int) -> int: ...

    def set_supply(self, project_id: int, amount: int) -> None: ...

    def set_sold(self, project_id: int, amount: int) -> None: ...

    def set_listed(self, project_id: int, amount: int) -> None: ...

    def state(self, project_id: int) -> ProjectState: ...

    def set_completed(self, project_id: int) -> None: ...

    def staked_collateral(self, seller: str, project_id: int) -> int: ...

    def stake_collateral(self, seller: str, project_id: int, amount: int) -> None: ...

    def release_collateral(self, seller: str, project_id: int) -> int: ...


class CreditLedgerProtocol(Snapshotable, Protocol):
    def mint(self, address: str, amount: int) -> None: ...

    def transfer(self, sender: str, recipient: str, amount: int) -> None: ...

    def balance_of(self, address: str) -> int: ...


class PayableProtocol(Protocol):
    address: str

    async def receive(self, amount: int) -> None: ...


class AuthorizationProtocol(Protocol):
    def has_role(self, role: Role, address: str) -> bool: ...

    def require_role(self, role: Role, address: str) -> None: ...

    def is_paused(self) -> bool: ...

    def require_not_paused(self) -> None: ...

    def is_blacklisted(self, address: str) -> bool: ...

    def require_not_blacklisted(self, address: str) -> None: ...

    def guard(self) -> AbstractAsyncContextManager[None]: ...

    def payable(self, address: str) -> PayableProtocol: ...
