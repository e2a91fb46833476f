"""AuthorizationService — roles, pause switch, blacklist, reentrancy guard,
and the payable-recipient capability.

Design:
  - Roles are plain (role, address) grants; ADMIN administers every role.
  - A blacklisted account loses every role and cannot be granted new ones.
  - ReentrancyGuard serializes guarded operations on an asyncio.Lock and
    marks the running transaction in a ContextVar. Code running inside that
    transaction (e.g. a recipient hook) that calls back into a guarded
    operation fails immediately instead of waiting on the lock.
  - PayableRecipient can only be minted through payable(); callers never
    coerce an arbitrary address into something that receives currency.
"""
import asyncio
import itertools
import logging
from collections.abc import AsyncIterator
from contextlib import AbstractAsyncContextManager, asynccontextmanager
from contextvars import ContextVar

from src.ecx_common.enums import Role
from src.ecx_common.errors import (
    BlacklistedError,
    InvalidAddressError,
    MissingRoleError,
    PausedError,
    ReentrancyError,
    RenounceForOtherError,
)
from src.ecx_ledger.infrastructure.native_bank import NativeBank

logger = logging.getLogger(__name__)

_guard_ids = itertools.count()
_CAPABILITY = object()


class ReentrancyGuard:
    def __init__(self) -> None:
        self._lock = asyncio.Lock()
        self._entered: ContextVar[bool] = ContextVar(
            f"ecx_reentrancy_{next(_guard_ids)}", default=False
        )

    @property
    def entered(self) -> bool:
        return self._entered.get()

    @asynccontextmanager
    async def acquire(self) -> AsyncIterator[None]:
        if self._entered.get():
            raise ReentrancyError()
        async with self._lock:
            token = self._entered.set(True)
            try:
                yield
            finally:
                self._entered.reset(token)


class PayableRecipient:
    """Capability to send native currency to one address.

    Crediting the bank happens first; the recipient's registered hook (if
    any) then runs with the amount. Errors from the hook propagate.
    """

    def __init__(self, bank: NativeBank, address: str, capability: object) -> None:
        if capability is not _CAPABILITY:
            raise TypeError("PayableRecipient must be obtained from AuthorizationService.payable()")
        self._bank = bank
        self.address = address

    async def receive(self, amount: int) -> None:
        if amount <= 0:
            return
        self._bank.credit(self.address, amount)
        hook = self._bank.receiver(self.address)
        if hook is not None:
            await hook(amount)

    def __repr__(self) -> str:
        return f"PayableRecipient({self.address!r})"


class AuthorizationService:
    def __init__(self, bank: NativeBank, admin: str) -> None:
        if not admin:
            raise InvalidAddressError()
        self._bank = bank
        self._roles: set[tuple[Role, str]] = {(Role.ADMIN, admin), (Role.PAUSER, admin)}
        self._blacklist: set[str] = set()
        self._paused = False
        self._guard = ReentrancyGuard()

    # --- roles ---

    def has_role(self, role: Role, address: str) -> bool:
        return (role, address) in self._roles

    def require_role(self, role: Role, address: str) -> None:
        if not self.has_role(role, address):
            raise MissingRoleError(role.value, address)

    def grant_role(self, caller: str, role: Role, address: str) -> None:
        self.require_role(Role.ADMIN, caller)
        if not address:
            raise InvalidAddressError()
        self.require_not_blacklisted(address)
        self._roles.add((role, address))
        logger.info("Role granted: role=%s address=%s by=%s", role.value, address, caller)

    def revoke_role(self, caller: str, role: Role, address: str) -> None:
        self.require_role(Role.ADMIN, caller)
        self._roles.discard((role, address))
        logger.info("Role revoked: role=%s address=%s by=%s", role.value, address, caller)

    def renounce_role(self, caller: str, role: Role, address: str) -> None:
        if caller != address:
            raise RenounceForOtherError()
        self._roles.discard((role, address))

    # --- pause ---

    def is_paused(self) -> bool:
        return self._paused

    def require_not_paused(self) -> None:
        if self._paused:
            raise PausedError()

    def pause(self, caller: str) -> None:
        self.require_role(Role.PAUSER, caller)
        self._paused = True
        logger.warning("Market paused by %s", caller)

    def unpause(self, caller: str) -> None:
        self.require_role(Role.PAUSER, caller)
        self._paused = False
        logger.info("Market unpaused by %s", caller)

    # --- blacklist ---

    def is_blacklisted(self, address: str) -> bool:
        return address in self._blacklist

    def require_not_blacklisted(self, address: str) -> None:
        if address in self._blacklist:
            raise BlacklistedError(address)

    def blacklist(self, caller: str, address: str) -> None:
        self.require_role(Role.ADMIN, caller)
        if not address:
            raise InvalidAddressError()
        self._blacklist.add(address)
        self._roles = {(role, addr) for role, addr in self._roles if addr != address}
        logger.warning("Account blacklisted: %s by=%s", address, caller)

    def unblacklist(self, caller: str, address: str) -> None:
        self.require_role(Role.ADMIN, caller)
        self._blacklist.discard(address)
        logger.info("Account removed from blacklist: %s by=%s", address, caller)

    # --- reentrancy / payable ---

    def guard(self) -> AbstractAsyncContextManager[None]:
        return self._guard.acquire()

    def payable(self, address: str) -> PayableRecipient:
        if not address:
            raise InvalidAddressError()
        return PayableRecipient(self._bank, address, _CAPABILITY)
