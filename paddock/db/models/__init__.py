from paddock.db.models.ballot_entries import BallotEntry
from paddock.db.models.ballot_results import BallotResult
from paddock.db.models.ballots import Ballot
from paddock.db.models.cart_items import CartItem
from paddock.db.models.carts import Cart
from paddock.db.models.horses import Horse
from paddock.db.models.leads import InterestSignup, Lead
from paddock.db.models.ownerships import Ownership
from paddock.db.models.promotions import Promotion
from paddock.db.models.purchases import Purchase
from paddock.db.models.renew_cycles import RenewCycle
from paddock.db.models.renew_responses import RenewResponse
from paddock.db.models.users import User
from paddock.db.models.vote_options import VoteOption
from paddock.db.models.vote_responses import VoteResponse
from paddock.db.models.votes import Vote
from paddock.db.models.wallet_transactions import WalletTransaction

__all__ = [
    "Ballot",
    "BallotEntry",
    "BallotResult",
    "Cart",
    "CartItem",
    "Horse",
    "InterestSignup",
    "Lead",
    "Ownership",
    "Promotion",
    "Purchase",
    "RenewCycle",
    "RenewResponse",
    "User",
    "Vote",
    "VoteOption",
    "VoteResponse",
    "WalletTransaction",
]
