import logging

from asn1crypto import pem
from asn1crypto.x509 import Certificate
from ecdsa import SigningKey
from ecdsa.der import UnexpectedDER

from .crypto import KeyPair, sign_hex
from .errors import U2FError

log = logging.getLogger(__name__)

# ECDSA-secp256r1 attestation key of the virtual-u2f-v0.0.1 batch
ATTESTATION_KEY = {
    'private': 'd30c9cac7da2b4a7d71b002a40a3b59a96ca508ba9c7dc617d982c4b11d952e6',
    'public': '04c3c91f252e20107b5e8deab1902098f7287071e45418b898ce5ff17ca725ae78'
        'c33cc701c0746011cbbbb58b08b61d20c05e75d501a3f8f7a1673fbe3263aebe',
}

# SHA256withECDSA, self issued by "Untrustworthy CA" for
# C=DE, O=virtual-u2f-manufacturer, ST=Berlin, CN=virtual-u2f-v0.0.1,
# valid from 2014-09-24 to 2114-09-24
ATTESTATION_CERTIFICATE = (
    '308201b430820158a003020102020101300c06082a8648ce3d04030205003061310b'
    '300906035504061302444531263024060355040a0c1d556e7472757374776f727468'
    '79204341204f7267616e69736174696f6e310f300d06035504080c064265726c696e'
    '3119301706035504030c10556e7472757374776f727468792043413022180f323031'
    '34303932343132303030305a180f32313134303932343132303030305a305e310b30'
    '090603550406130244453121301f060355040a0c187669727475616c2d7532662d6d'
    '616e756661637475726572310f300d06035504080c064265726c696e311b30190603'
    '5504030c127669727475616c2d7532662d76302e302e313059301306072a8648ce3d'
    '020106082a8648ce3d03010703420004c3c91f252e20107b5e8deab1902098f72870'
    '71e45418b898ce5ff17ca725ae78c33cc701c0746011cbbbb58b08b61d20c05e75d5'
    '01a3f8f7a1673fbe3263aebe300c06082a8648ce3d040302050003480030450221008e'
    'b92057a1f3414f1b791a58e607aba4661c9361fbc4ba89655c8a3bec1068da022015'
    '90a876f08047df608e23b22aa0aad24b0d49c9753300af32b69073f0a1a4db'
)

def certificate_public_key(certificate_der):
    '''
    return the uncompressed EC point of the certificate subject as bytes
    '''
    certificate = Certificate.load(bytes(certificate_der))
    return certificate.public_key['public_key'].native

class AttestationIdentity(object):
    '''
    the key pair and X.509 certificate shared by every token of a
    manufacturing batch, used to sign all registration responses
    '''
    def __init__(self, key_pair, certificate_hex):
        self.key_pair = key_pair
        self.certificate_hex = certificate_hex

    @classmethod
    def default(cls):
        key_pair = KeyPair(ATTESTATION_KEY['private'], ATTESTATION_KEY['public'])
        return cls(key_pair, ATTESTATION_CERTIFICATE)

    @classmethod
    def from_files(cls, key_path, certificate_path):
        with open(key_path, 'rb') as f:
            try:
                signing_key = SigningKey.from_pem(f.read())
            except (ValueError, UnexpectedDER) as e:
                raise U2FError('invalid attestation key %s: %s' % (key_path, e)) from e
        key_pair = KeyPair.from_signing_key(signing_key)
        with open(certificate_path, 'rb') as f:
            certificate = f.read()
        try:
            if pem.detect(certificate):
                _, _, certificate = pem.unarmor(certificate)
            public_key = certificate_public_key(certificate)
        except (ValueError, TypeError) as e:
            raise U2FError('invalid attestation certificate %s: %s' % (
                certificate_path, e)) from e
        if public_key.hex() != key_pair.public_hex:
            raise U2FError('attestation key does not match certificate %s' %
                certificate_path)
        log.info('loaded attestation identity from %s', certificate_path)
        return cls(key_pair, certificate.hex())

    @property
    def certificate(self):
        return bytes.fromhex(self.certificate_hex)

    @property
    def subject(self):
        return Certificate.load(self.certificate).subject.human_friendly

    def sign(self, message_hex):
        return sign_hex(self.key_pair.private_hex, message_hex)
