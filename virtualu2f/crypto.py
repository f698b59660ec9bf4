import logging
from hashlib import sha256

from ecdsa import SigningKey, NIST256p, MalformedPointError
from ecdsa.util import sigencode_der

from .errors import CryptoPrimitiveError

log = logging.getLogger(__name__)

class KeyPair(object):
    '''
    a secp256r1 key pair as hex strings, the public key in uncompressed
    x,y notation with 0x04 as byte 0
    '''
    def __init__(self, private_hex, public_hex):
        self.private_hex = private_hex
        self.public_hex = public_hex

    @classmethod
    def from_signing_key(cls, signing_key):
        public_key = b'\x04' + signing_key.get_verifying_key().to_string()
        return cls(signing_key.to_string().hex(), public_key.hex())

def generate_key_pair():
    try:
        signing_key = SigningKey.generate(curve=NIST256p, hashfunc=sha256)
    except Exception as e:
        raise CryptoPrimitiveError('key pair generation failed: %s' % e) from e
    key_pair = KeyPair.from_signing_key(signing_key)
    log.debug('generated key pair with public key %s', key_pair.public_hex)
    return key_pair

def signing_key_from_hex(private_hex):
    # exported keys may lack leading zeros, go through the secret exponent
    try:
        secexp = int(private_hex, 16)
        return SigningKey.from_secret_exponent(secexp, curve=NIST256p,
            hashfunc=sha256)
    except (ValueError, TypeError, MalformedPointError) as e:
        raise CryptoPrimitiveError('invalid private key') from e

def sign_hex(private_hex, message_hex):
    '''
    sign the message given as hex string with SHA256withECDSA and return
    the DER encoded signature as hex string
    '''
    signing_key = signing_key_from_hex(private_hex)
    try:
        signature = signing_key.sign_deterministic(bytes.fromhex(message_hex),
            sigencode=sigencode_der)
    except Exception as e:
        raise CryptoPrimitiveError('signing failed: %s' % e) from e
    return signature.hex()

def sha256_digest(s):
    if isinstance(s, str):
        s = s.encode('utf-8')
    return sha256(s).hexdigest()
