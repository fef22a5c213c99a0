from paddock.db.repo.ballots_repo import BallotsRepo
from paddock.db.repo.carts_repo import CartsRepo
from paddock.db.repo.horses_repo import HorsesRepo
from paddock.db.repo.leads_repo import LeadsRepo
from paddock.db.repo.ownerships_repo import OwnershipsRepo
from paddock.db.repo.promotions_repo import PromotionsRepo
from paddock.db.repo.purchases_repo import PurchasesRepo
from paddock.db.repo.renewals_repo import RenewalsRepo
from paddock.db.repo.users_repo import UsersRepo
from paddock.db.repo.votes_repo import VotesRepo
from paddock.db.repo.wallet_repo import WalletRepo

__all__ = [
    "BallotsRepo",
    "CartsRepo",
    "HorsesRepo",
    "LeadsRepo",
    "OwnershipsRepo",
    "PromotionsRepo",
    "PurchasesRepo",
    "RenewalsRepo",
    "UsersRepo",
    "VotesRepo",
    "WalletRepo",
]
