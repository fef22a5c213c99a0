class WalletError(Exception):
    pass


class InvalidWalletAmountError(WalletError):
    pass


class NoOwnersError(WalletError):
    pass
