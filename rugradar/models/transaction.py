"""Pydantic models for enhanced (parsed) transactions fed to the detectors."""

from decimal import Decimal

from pydantic import BaseModel

LAMPORTS_PER_SOL = 1_000_000_000

# Transaction types that mark liquidity pool creation
POOL_CREATION_TYPES = frozenset({"CREATE_POOL", "ADD_LIQUIDITY", "INITIALIZE_POOL"})


class TokenTransfer(BaseModel):
    """Token transfer within a transaction."""

    from_user_account: str = ""
    to_user_account: str = ""
    mint: str = ""
    token_amount: Decimal = Decimal("0")


class NativeTransfer(BaseModel):
    """SOL native transfer within a transaction."""

    from_user_account: str = ""
    to_user_account: str = ""
    amount: int = 0  # lamports


class Transaction(BaseModel):
    """Enhanced parsed transaction (Helius shape)."""

    signature: str
    slot: int = 0
    timestamp: int = 0  # unix
    type: str = ""  # "SWAP", "TRANSFER", "CREATE_POOL", ...
    fee_payer: str = ""
    token_transfers: list[TokenTransfer] = []
    native_transfers: list[NativeTransfer] = []
    transaction_error: str | dict | None = None  # non-None means failed

    model_config = {"extra": "ignore", "frozen": True}

    @property
    def failed(self) -> bool:
        return self.transaction_error is not None

    @property
    def is_swap(self) -> bool:
        return self.type == "SWAP"

    def is_buy(self, mint: str) -> bool:
        """Successful swap where the fee payer receives the token."""
        if self.failed or not self.is_swap:
            return False
        return any(
            tt.mint == mint and tt.to_user_account == self.fee_payer and tt.token_amount > 0
            for tt in self.token_transfers
        )

    def is_sell(self, mint: str) -> bool:
        """Successful swap where the fee payer gives the token away."""
        if self.failed or not self.is_swap:
            return False
        return any(
            tt.mint == mint and tt.from_user_account == self.fee_payer and tt.token_amount > 0
            for tt in self.token_transfers
        )

    def is_failed_sell(self, mint: str) -> bool:
        """Failed swap where the fee payer tried to give the token away."""
        if not self.failed or not self.is_swap:
            return False
        return any(
            tt.mint == mint and tt.from_user_account == self.fee_payer and tt.token_amount > 0
            for tt in self.token_transfers
        )

    def token_amount_for(self, mint: str) -> Decimal:
        return sum(
            (tt.token_amount for tt in self.token_transfers if tt.mint == mint),
            Decimal("0"),
        )

    def sol_moved_by(self, wallet: str) -> float:
        """SOL sent or received by the wallet in this transaction."""
        lamports = sum(
            nt.amount
            for nt in self.native_transfers
            if wallet in (nt.from_user_account, nt.to_user_account)
        )
        return lamports / LAMPORTS_PER_SOL
