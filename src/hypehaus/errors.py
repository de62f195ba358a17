"""Categorical errors for the issuance ledger.

Every error terminates the triggering request with no partial effect.
None are retried internally. Each carries a stable code that front ends
match on; describe_error() maps a code to the message shown to a
minter, with a generic fallback for anything unrecognised.
"""

from __future__ import annotations

from typing import Optional


class HypeHausError(Exception):
    """Base class for every ledger rejection."""
    code = "HH_ERROR"
    default_message = "Request rejected"

    def __init__(self, message: Optional[str] = None) -> None:
        self.message = message or self.default_message
        super().__init__(f"{self.code}: {self.message}")


class CommunitySaleNotActive(HypeHausError):
    code = "HH_COMMUNITY_SALE_NOT_ACTIVE"
    default_message = "Community sale is not active"


class PublicSaleNotActive(HypeHausError):
    code = "HH_PUBLIC_SALE_NOT_ACTIVE"
    default_message = "Public sale is not active"


class InvalidMintAmount(HypeHausError):
    code = "HH_INVALID_MINT_AMOUNT"
    default_message = "Mint amount out of range"


class VerificationFailure(HypeHausError):
    code = "HH_VERIFICATION_FAILURE"
    default_message = "Merkle proof does not match the tier root"


class InsufficientFunds(HypeHausError):
    code = "HH_INSUFFICIENT_FUNDS"
    default_message = "Attached payment below price"


class AlreadyClaimed(HypeHausError):
    """One code, two conditions.

    reason is COMMUNITY_CLAIMED for the one-shot community flag and
    PUBLIC_QUOTA_EXCEEDED for the cumulative public budget. Front ends
    only ever see the code.
    """
    code = "HH_ALREADY_CLAIMED"
    default_message = "Wallet has already claimed"

    COMMUNITY_CLAIMED = "community_claimed"
    PUBLIC_QUOTA_EXCEEDED = "public_quota_exceeded"

    def __init__(self, reason: str, message: Optional[str] = None) -> None:
        self.reason = reason
        super().__init__(message)


class SupplyExhausted(HypeHausError):
    code = "HH_SUPPLY_EXHAUSTED"
    default_message = "Allocation would exceed max supply"


class UnknownToken(HypeHausError):
    code = "HH_UNKNOWN_TOKEN"
    default_message = "Token has not been minted"


class NotOwner(HypeHausError):
    code = "HH_NOT_OWNER"
    default_message = "Wallet does not own token"


class Unauthorized(HypeHausError):
    """Caller lacks the required role (or is not the designated owner)."""
    code = "HH_UNAUTHORIZED"
    default_message = "Caller is not authorized"

    _CODES = {
        "admin": "HH_CALLER_NOT_ADMIN",
        "operator": "HH_CALLER_NOT_OPERATOR",
        "withdrawer": "HH_CALLER_NOT_WITHDRAWER",
        "owner": "HH_CALLER_NOT_OWNER",
    }

    def __init__(self, required: str, caller: str) -> None:
        self.required = required
        self.caller = caller
        self.code = self._CODES.get(required, Unauthorized.code)
        super().__init__(f"{caller} lacks {required} role")


# Human-readable messages keyed by code.
USER_MESSAGES: dict[str, str] = {
    AlreadyClaimed.code: "Sorry, you've already claimed one or more *HYPEHAUSes!",
    CommunitySaleNotActive.code: "Sorry, the community sale is not open yet! Come back later.",
    InsufficientFunds.code: "You don't have enough ETH to mint!",
    InvalidMintAmount.code: "You provided an invalid amount to mint! Please try again.",
    PublicSaleNotActive.code: "Sorry, the public sale is not open yet! Come back later.",
    SupplyExhausted.code: "Sorry, there are no more *HYPEHAUS left to mint!",
    VerificationFailure.code: (
        "You don't seem to be in the allow list. Come back later for the public sale."
    ),
    UnknownToken.code: "That *HYPEHAUS doesn't exist yet.",
    NotOwner.code: "You don't own that *HYPEHAUS.",
    "HH_CALLER_NOT_ADMIN": "Only an admin can do that.",
    "HH_CALLER_NOT_OPERATOR": "Only an operator can do that.",
    "HH_CALLER_NOT_WITHDRAWER": "Only a withdrawer can do that.",
    "HH_CALLER_NOT_OWNER": "Only the contract owner can do that.",
}


def describe_error(code: Optional[str]) -> str:
    """Return the fixed message for an error code, or a generic fallback."""
    if code and code in USER_MESSAGES:
        return USER_MESSAGES[code]
    return (
        "An unknown error occurred. Please try again later. "
        f"(Error {code or 'UNKNOWN'})"
    )
