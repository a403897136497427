"""Shared test helpers."""

from eth_account import Account
from eth_account.messages import encode_defunct

TEST_SECRET_KEY = "test-secret-key-for-testing-only"
START_TIME = 1_760_000_000.0


class ManualClock:
    """Clock that only moves when told to."""

    def __init__(self, start: float = START_TIME):
        self.current = start

    def now(self) -> float:
        return self.current

    def advance(self, seconds: float) -> None:
        self.current += seconds


def sign(account, message: str) -> str:
    """personal_sign a message with a test account."""
    signed = Account.sign_message(encode_defunct(text=message), private_key=account.key)
    return "0x" + signed.signature.hex().removeprefix("0x")
