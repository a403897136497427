"""Canonical sign-in message.

The rendered text is the only byte-level contract shared between challenge
issuance and verification. It depends solely on values stored with the
challenge, so the verifier can rebuild it without client input.
"""

from datetime import datetime, timezone

DEFAULT_TEMPLATE = (
    "{app_name} wants you to sign in with your Ethereum account:\n"
    "{wallet_address}\n"
    "\n"
    "{statement}\n"
    "\n"
    "Nonce: {nonce}\n"
    "Issued At: {issued_at}"
)


def format_issued_at(issued_at: int) -> str:
    """Render unix seconds as ISO-8601 UTC with a Z suffix."""
    return (
        datetime.fromtimestamp(issued_at, tz=timezone.utc)
        .replace(tzinfo=None)
        .isoformat(timespec="seconds")
        + "Z"
    )


class SignMessageBuilder:
    """Renders the sign-in message for a challenge."""

    def __init__(
        self,
        app_name: str,
        statement: str,
        template: str = DEFAULT_TEMPLATE,
    ):
        """Initialize message builder.

        Args:
            app_name: Application name shown to the signer
            statement: Human-readable statement of intent
            template: Format string with wallet_address, nonce, issued_at,
                app_name and statement fields
        """
        self.app_name = app_name
        self.statement = statement
        self.template = template

    def build(self, wallet_address: str, nonce: str, issued_at: int) -> str:
        """Build the message for a normalized address, nonce and issue time."""
        return self.template.format(
            app_name=self.app_name,
            statement=self.statement,
            wallet_address=wallet_address,
            nonce=nonce,
            issued_at=format_issued_at(issued_at),
        )
