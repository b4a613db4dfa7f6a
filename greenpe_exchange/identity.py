"""
Identity Registrar

Maps a display name to a stable energy id. The identity hash is a
placeholder for demos and must never be treated as real verification.
"""

import re
from typing import Dict, Optional

from greenpe_exchange.logging_config import logger
from greenpe_exchange.models import Account
from greenpe_exchange.settings import settings

_NON_ALNUM = re.compile(r"[^a-z0-9]", re.IGNORECASE)


def slugify(display_name: str) -> str:
    slug = _NON_ALNUM.sub("", display_name).lower()
    return slug or settings.DEFAULT_DISPLAY_NAME


def make_account_id(display_name: str) -> str:
    return f"{slugify(display_name)}@{settings.ACCOUNT_DOMAIN}"


def stub_identity_hash(raw_identity_number: str) -> Optional[str]:
    """Mock hash of the last four characters. NOT cryptographically secure."""
    if not raw_identity_number:
        return None
    return f"hash_{raw_identity_number[-4:]}"


class IdentityRegistrar:
    """Registers accounts for a session"""

    def __init__(self):
        self.accounts: Dict[str, Account] = {}

    def register(
        self,
        display_name: Optional[str],
        raw_identity_number: Optional[str] = None,
        tax_id: Optional[str] = None,
    ) -> Account:
        """
        Register (or re-register) an account.

        Re-registering the same name replaces the stored account. That is
        fine for a single-user session but must be revisited for multi-user.

        Args:
            display_name: Human name; empty falls back to "user"
            raw_identity_number: Identity number; empty falls back to "0000"
            tax_id: Optional tax id; empty is stored as None

        Returns:
            The registered Account
        """
        name = display_name or settings.DEFAULT_DISPLAY_NAME
        identity_number = raw_identity_number or settings.DEFAULT_IDENTITY_NUMBER

        account = Account(
            account_id=make_account_id(name),
            display_name=name,
            identity_hash=stub_identity_hash(identity_number),
            tax_id=tax_id or None,
        )

        if account.account_id in self.accounts:
            logger.warning(f"Re-registering {account.account_id}, replacing stored account")
        self.accounts[account.account_id] = account
        logger.info(f"Registered account {account.account_id}")
        return account

    def get(self, account_id: str) -> Optional[Account]:
        """Get an account by ID"""
        return self.accounts.get(account_id)
