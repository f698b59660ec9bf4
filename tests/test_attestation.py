import pytest
from ecdsa import SigningKey, NIST256p

from virtualu2f.attestation import (
    ATTESTATION_CERTIFICATE,
    ATTESTATION_KEY,
    AttestationIdentity,
    certificate_public_key,
)
from virtualu2f.crypto import KeyPair, generate_key_pair, sign_hex
from virtualu2f.errors import U2FError
from virtualu2f.u2f import u2f_verify_signature


def test_certificate_matches_key():
    public_key = certificate_public_key(bytes.fromhex(ATTESTATION_CERTIFICATE))
    assert public_key.hex() == ATTESTATION_KEY['public']


def test_default_identity():
    attestation = AttestationIdentity.default()
    assert 'virtual-u2f-v0.0.1' in attestation.subject
    signature = attestation.sign('00' * 8)
    assert u2f_verify_signature(bytes.fromhex(signature), b'\x00' * 8,
        bytes.fromhex(ATTESTATION_KEY['public']))


def test_generated_key_pair():
    key_pair = generate_key_pair()
    assert len(key_pair.public_hex) == 130
    assert key_pair.public_hex.startswith('04')
    signature = sign_hex(key_pair.private_hex, 'abcd')
    assert u2f_verify_signature(bytes.fromhex(signature), b'\xab\xcd',
        bytes.fromhex(key_pair.public_hex))


def test_private_key_without_leading_zeros():
    signing_key = SigningKey.from_secret_exponent(0x1234, curve=NIST256p)
    key_pair = KeyPair.from_signing_key(signing_key)
    signature = sign_hex('1234', 'abcd')
    assert u2f_verify_signature(bytes.fromhex(signature), b'\xab\xcd',
        bytes.fromhex(key_pair.public_hex))


def write_key(path, private_hex):
    signing_key = SigningKey.from_string(bytes.fromhex(private_hex),
        curve=NIST256p)
    path.write_bytes(signing_key.to_pem())


def test_from_files(tmp_path):
    key_path = tmp_path / 'key.pem'
    certificate_path = tmp_path / 'cert.der'
    write_key(key_path, ATTESTATION_KEY['private'])
    certificate_path.write_bytes(bytes.fromhex(ATTESTATION_CERTIFICATE))

    attestation = AttestationIdentity.from_files(str(key_path),
        str(certificate_path))
    assert attestation.certificate_hex == ATTESTATION_CERTIFICATE
    assert attestation.key_pair.public_hex == ATTESTATION_KEY['public']


def test_from_files_pem_certificate(tmp_path):
    from asn1crypto import pem
    key_path = tmp_path / 'key.pem'
    certificate_path = tmp_path / 'cert.pem'
    write_key(key_path, ATTESTATION_KEY['private'])
    certificate_path.write_bytes(pem.armor('CERTIFICATE',
        bytes.fromhex(ATTESTATION_CERTIFICATE)))

    attestation = AttestationIdentity.from_files(str(key_path),
        str(certificate_path))
    assert attestation.certificate_hex == ATTESTATION_CERTIFICATE


def test_from_files_key_mismatch(tmp_path):
    key_path = tmp_path / 'key.pem'
    certificate_path = tmp_path / 'cert.der'
    write_key(key_path, '01' * 32)
    certificate_path.write_bytes(bytes.fromhex(ATTESTATION_CERTIFICATE))
    with pytest.raises(U2FError):
        AttestationIdentity.from_files(str(key_path), str(certificate_path))


def test_from_files_invalid_key(tmp_path):
    key_path = tmp_path / 'key.pem'
    certificate_path = tmp_path / 'cert.der'
    key_path.write_bytes(b'not a key')
    certificate_path.write_bytes(bytes.fromhex(ATTESTATION_CERTIFICATE))
    with pytest.raises(U2FError):
        AttestationIdentity.from_files(str(key_path), str(certificate_path))


def test_from_files_invalid_certificate(tmp_path):
    key_path = tmp_path / 'key.pem'
    certificate_path = tmp_path / 'cert.der'
    write_key(key_path, ATTESTATION_KEY['private'])
    certificate_path.write_bytes(b'x')
    with pytest.raises(U2FError):
        AttestationIdentity.from_files(str(key_path), str(certificate_path))
