"""Tests for payment proof construction and verification."""

import base64
import json

import pytest
from eth_account import Account

from dexfra.errors import PaymentConstructionError
from dexfra.proof import build_payment_proof, decode_payment_proof, verify_payment_proof
from dexfra.protocol import PaymentOffer
from dexfra.signers import LocalKeySigner, PaymentSigner

OFFER = PaymentOffer(
    scheme="exact",
    network="base-sepolia",
    recipient="0x1111111111111111111111111111111111111111",
    max_amount_required="1000",
    token="0x036CbD53842c5426634e7929541eC2318f3dCF7e",
)


class BrokenSigner(PaymentSigner):
    @property
    def address(self):
        return "0x0000000000000000000000000000000000000000"

    async def sign(self, payload):
        raise RuntimeError("hardware wallet unplugged")


class TestBuildPaymentProof:
    @pytest.fixture
    def signer(self):
        return LocalKeySigner(Account.create())

    @pytest.mark.asyncio
    async def test_header_is_base64_json(self, signer):
        header = await build_payment_proof(signer, 1, OFFER)
        proof = json.loads(base64.b64decode(header))
        assert proof["version"] == 1
        assert proof["network"] == "base-sepolia"
        assert proof["recipient"] == OFFER.recipient
        assert proof["amount"] == "1000"
        assert proof["token"] == OFFER.token
        assert proof["scheme"] == "exact"
        assert proof["payer"] == signer.address
        assert isinstance(proof["timestamp"], int)

    @pytest.mark.asyncio
    async def test_signature_verifies(self, signer):
        header = await build_payment_proof(signer, 1, OFFER)
        assert verify_payment_proof(header)

    @pytest.mark.asyncio
    async def test_tampered_amount_fails_verification(self, signer):
        proof = decode_payment_proof(await build_payment_proof(signer, 1, OFFER))
        proof["amount"] = "1"
        tampered = base64.b64encode(json.dumps(proof).encode()).decode()
        assert not verify_payment_proof(tampered)

    @pytest.mark.asyncio
    async def test_signer_failure_wrapped(self):
        with pytest.raises(PaymentConstructionError) as exc:
            await build_payment_proof(BrokenSigner(), 1, OFFER)
        assert exc.value.code == "PAYMENT_CREATION_FAILED"
        assert isinstance(exc.value.__cause__, RuntimeError)
        assert "hardware wallet unplugged" in str(exc.value)


class TestDecodePaymentProof:
    def test_not_base64(self):
        with pytest.raises(ValueError):
            decode_payment_proof("not base64 !!")

    def test_not_an_object(self):
        with pytest.raises(ValueError):
            decode_payment_proof(base64.b64encode(b"[1, 2]").decode())

    def test_verify_rejects_garbage(self):
        assert verify_payment_proof("garbage") is False
