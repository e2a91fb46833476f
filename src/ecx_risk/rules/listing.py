from src.ecx_common.errors import ListingCapacityExceededError
from src.ecx_ledger.domain.protocols import ProjectLedgerProtocol


def check_listing_capacity(projects: ProjectLedgerProtocol, project_id: int, amount: int) -> None:
    """New listings may not exceed the project's verified supply."""
    listed = projects.listed(project_id)
    supply = projects.supply(project_id)
    if listed + amount > supply:
        raise ListingCapacityExceededError(
            f"project {project_id}: listed {listed} + {amount} > supply {supply}"
        )


def check_purchasable(projects: ProjectLedgerProtocol, project_id: int, amount: int) -> None:
    """Buyers can only take what sellers have listed and not yet sold."""
    listed = projects.listed(project_id)
    sold = projects.sold(project_id)
    if sold + amount > listed:
        raise ListingCapacityExceededError(
            f"project {project_id}: sold {sold} + {amount} > listed {listed}"
        )


def check_seller_staked(projects: ProjectLedgerProtocol, seller: str, project_id: int) -> None:
    """Primary purchases are only filled against a seller that posted collateral."""
    if projects.staked_collateral(seller, project_id) == 0:
        raise ListingCapacityExceededError(
            f"project {project_id}: seller {seller} has no staked listing"
        )
