from src.ecx_common.enums import ProjectState, Role
from src.ecx_common.errors import NotProjectOwnerError, ProjectNotFoundError
from src.ecx_ledger.domain.protocols import AuthorizationProtocol, ProjectLedgerProtocol


def check_trader(auth: AuthorizationProtocol, address: str) -> None:
    """Any trade: market live and caller not blacklisted."""
    auth.require_not_paused()
    auth.require_not_blacklisted(address)


def check_seller(
    auth: AuthorizationProtocol,
    projects: ProjectLedgerProtocol,
    seller: str,
    project_id: int,
) -> None:
    """Primary listing needs a registered company that owns the project.

    Resale of leftover credits after settlement only needs a clean trader.
    """
    check_trader(auth, seller)
    if not projects.exists(project_id):
        raise ProjectNotFoundError(project_id)
    if projects.state(project_id) == ProjectState.COMPLETED:
        return
    auth.require_role(Role.COMPANY, seller)
    check_project_owner(projects, seller, project_id)


def check_project_owner(projects: ProjectLedgerProtocol, seller: str, project_id: int) -> None:
    if not projects.owned_by(project_id, seller):
        raise NotProjectOwnerError(project_id, seller)
