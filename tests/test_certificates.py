import json

import pytest

from greenpe_exchange.certificates import CertificateExporter, CertificateIssuer
from greenpe_exchange.exceptions import AccountRequired
from greenpe_exchange.models import Account

from .conftest import EPOCH


@pytest.fixture()
def issuer(ledger, scheduler):
    return CertificateIssuer(ledger, scheduler)


class TestCertificateIssuer:
    def test_snapshot_rounding(self, issuer, ledger, seller):
        row = ledger.get_balance(seller.account_id)
        row.credit_balance = 1.234567
        row.carbon_offset_kg = 9.8765

        certificate = issuer.issue(seller)

        assert certificate.total_credits == 1.234567
        assert certificate.total_carbon_offset_kg == 9.877

    def test_fields(self, issuer, ledger, seller):
        certificate = issuer.issue(seller)

        assert certificate.certificate_id.startswith("GIC-")
        assert certificate.issuer == "GreenPe:CERTv1"
        assert certificate.generator_account_id == seller.account_id
        assert certificate.identity_hash == "hash_1234"
        assert certificate.tax_id == "NA"
        assert certificate.compliance.flag is True
        assert certificate.compliance.issued_at == EPOCH

    def test_tax_id_carried_when_present(self, issuer, ledger):
        account = Account(account_id="mill@greenpe", display_name="Mill", tax_id="22AAAAA0000A1Z5")
        ledger.open_account(account.account_id)
        assert issuer.issue(account).tax_id == "22AAAAA0000A1Z5"

    def test_requires_account(self, issuer, ledger):
        with pytest.raises(AccountRequired):
            issuer.issue(None)
        assert ledger.certificates == []

    def test_history_most_recent_first_and_immutable(self, issuer, ledger, seller, scheduler):
        first = issuer.issue(seller)
        ledger.add_credits(seller.account_id, 0.25)
        scheduler.advance(1)
        second = issuer.issue(seller)

        assert ledger.certificates == [second, first]
        assert first.total_credits == 0.5
        assert second.total_credits == 0.75
        with pytest.raises(Exception):
            first.total_credits = 99

    def test_clear(self, issuer, ledger, seller):
        issuer.issue(seller)
        issuer.issue(seller)
        assert issuer.clear() == 2
        assert ledger.certificates == []


class TestCertificateExporter:
    def test_export_writes_named_json(self, tmp_path, ledger, scheduler, seller):
        exporter = CertificateExporter(str(tmp_path / "gic"))
        certificate = CertificateIssuer(ledger, scheduler, exporter).issue(seller)

        path = tmp_path / "gic" / f"{certificate.certificate_id}.json"
        assert path.exists()

        document = json.loads(path.read_text(encoding="utf-8"))
        assert set(document) == {
            "certificateId",
            "issuer",
            "totalCredits",
            "totalCarbonOffsetKg",
            "generatorAccountId",
            "identityHash",
            "taxId",
            "compliance",
        }
        assert set(document["compliance"]) == {"flag", "issuedAt"}
        assert document["certificateId"] == certificate.certificate_id
        assert document["totalCredits"] == 0.5
        assert document["taxId"] == "NA"

    def test_to_json_round_trips_through_model(self, ledger, scheduler, seller):
        certificate = CertificateIssuer(ledger, scheduler).issue(seller)
        payload = CertificateExporter.to_json(certificate)
        assert type(certificate).model_validate_json(payload) == certificate
