"""Genesis token allocation"""

from typing import Dict

from .errors import InvalidNumber, ZeroAccounts

# validator stake is 20% of the supply, self-delegation 10% of the stake
VALIDATOR_HASH_PERCENT = 20
VALIDATOR_DELEGATION_PERCENT = 10


class GenesisPlan:
    """Exact integer allocation of the hash supply at genesis"""

    def __init__(self, total_supply: int, accounts: int, validator_stake: int,
                 validator_delegation: int, per_account_balance: int):
        self.total_supply = total_supply
        self.accounts = accounts
        self.validator_stake = validator_stake
        self.validator_delegation = validator_delegation
        self.per_account_balance = per_account_balance

    @property
    def unallocated(self) -> int:
        # the truncation remainder is never distributed
        return self.total_supply - self.validator_stake - self.per_account_balance * self.accounts

    def to_dict(self) -> Dict:
        return {
            "total_supply": str(self.total_supply),
            "accounts": self.accounts,
            "validator_stake": str(self.validator_stake),
            "validator_delegation": str(self.validator_delegation),
            "per_account_balance": str(self.per_account_balance),
            "unallocated": str(self.unallocated),
        }

    def __eq__(self, other):
        if not isinstance(other, GenesisPlan):
            return NotImplemented
        return self.to_dict() == other.to_dict()

    def __repr__(self):
        return (f"GenesisPlan(validator_stake={self.validator_stake}, "
                f"validator_delegation={self.validator_delegation}, "
                f"per_account_balance={self.per_account_balance})")


def plan_genesis(total_supply: int, accounts: int) -> GenesisPlan:
    """
    Split the total supply between the validator and the accounts.

    All divisions truncate. The validator keeps its whole stake (the
    self-delegation is carved out of it, not added) and whatever remains
    after dividing the rest between the accounts is left unallocated.
    """
    if accounts == 0:
        raise ZeroAccounts()
    if accounts < 0:
        raise InvalidNumber("accounts", accounts)
    if total_supply < 0:
        raise InvalidNumber("hashSupply", total_supply)

    validator_stake = total_supply * VALIDATOR_HASH_PERCENT // 100
    validator_delegation = validator_stake * VALIDATOR_DELEGATION_PERCENT // 100
    remaining = total_supply - validator_stake
    per_account_balance = remaining // accounts

    return GenesisPlan(
        total_supply=total_supply,
        accounts=accounts,
        validator_stake=validator_stake,
        validator_delegation=validator_delegation,
        per_account_balance=per_account_balance,
    )
