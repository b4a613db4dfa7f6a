"""
Certificate Issuer

Bundles an account's accrued credits and carbon offsets into a green impact
certificate and hands it to an exporter.
"""

import itertools
from pathlib import Path
from typing import Optional

from greenpe_exchange.exceptions import AccountRequired, ValidationError
from greenpe_exchange.ledger import CARBON_PLACES, CREDIT_PLACES, LedgerState
from greenpe_exchange.logging_config import logger
from greenpe_exchange.models import Account, Certificate, ComplianceInfo
from greenpe_exchange.scheduler import SimulatedScheduler
from greenpe_exchange.settings import settings

MISSING_TAX_ID = "NA"


class CertificateExporter:
    """Writes certificates as ``<certificateId>.json`` files"""

    def __init__(self, export_dir: Optional[str] = None):
        self.export_dir = Path(export_dir or settings.CERTIFICATE_EXPORT_DIR)

    @staticmethod
    def to_json(certificate: Certificate) -> str:
        return certificate.model_dump_json(by_alias=True, indent=2)

    def export(self, certificate: Certificate) -> Path:
        self.export_dir.mkdir(parents=True, exist_ok=True)
        path = self.export_dir / f"{certificate.certificate_id}.json"
        path.write_text(self.to_json(certificate), encoding="utf-8")
        logger.info(f"Exported certificate to {path}")
        return path


class CertificateIssuer:
    """Issues certificates from ledger snapshots"""

    def __init__(
        self,
        ledger: LedgerState,
        scheduler: SimulatedScheduler,
        exporter: Optional[CertificateExporter] = None,
    ):
        """
        Initialize the issuer.

        Args:
            ledger: Ledger the totals are read from
            scheduler: Clock used for ids and timestamps
            exporter: Export collaborator; None keeps certificates in memory only
        """
        self.ledger = ledger
        self.scheduler = scheduler
        self.exporter = exporter
        self._seq = itertools.count(1)

    def issue(self, account: Optional[Account]) -> Certificate:
        """
        Snapshot the account's credits and carbon offsets.

        Raises:
            ValidationError: If no account is onboarded
        """
        if account is None:
            raise AccountRequired("generate a certificate")

        balance = self.ledger.get_balance(account.account_id)
        if balance is None:
            raise ValidationError(
                f"No ledger row for account {account.account_id}",
                field="account_id",
                value=account.account_id,
            )

        issued_at = self.scheduler.current_time()
        millis = int(issued_at.timestamp() * 1000)
        certificate = Certificate(
            certificate_id=f"GIC-{millis}-{next(self._seq)}",
            issuer=settings.CERTIFICATE_ISSUER,
            total_credits=round(balance.credit_balance, CREDIT_PLACES),
            total_carbon_offset_kg=round(balance.carbon_offset_kg, CARBON_PLACES),
            generator_account_id=account.account_id,
            identity_hash=account.identity_hash,
            tax_id=account.tax_id or MISSING_TAX_ID,
            compliance=ComplianceInfo(flag=True, issued_at=issued_at),
        )
        self.ledger.add_certificate(certificate)
        logger.info(
            f"Issued {certificate.certificate_id} to {account.account_id}: "
            f"{certificate.total_credits} credits, "
            f"{certificate.total_carbon_offset_kg} kg CO2e"
        )

        if self.exporter is not None:
            self.exporter.export(certificate)
        return certificate

    def clear(self) -> int:
        """Empty the certificate history. Returns how many were removed."""
        cleared = self.ledger.clear_certificates()
        logger.info(f"Cleared {cleared} certificate(s)")
        return cleared
