import logging, os

from asn1crypto.core import load
from ecdsa import VerifyingKey, NIST256p
from hashlib import sha256

from .attestation import certificate_public_key
from .crypto import generate_key_pair, sign_hex, sha256_digest
from .encoding import (
    b64tohex,
    client_data_b64,
    client_data_string,
    counter_padding,
    decimal_to_hex_byte,
    hextob64,
    websafe_b64decode,
)
from .errors import (
    U2FError,
    DeviceIneligibleError,
    DuplicateApplicationError,
)
from .keystore import Credential

log = logging.getLogger(__name__)

# reserved for future use, first byte of the registration base string
FUTURE_USE_BYTE = '00'
# first byte of a registration response
RESERVED_BYTE = '05'
USER_PRESENCE_BYTE = '01'

KEY_HANDLE_LEN = 16
# counters wrap here instead of at the end of their 4 byte field
COUNTER_WRAP = 65535

def der_len(data, offset):
    '''
    return the len of a der encoded structure at the given offset
    '''
    if data[offset] != 0x30:
        # universal (0), structured(1), sequence(16)
        raise U2FError('invalid DER type 0x%x' % data[offset])

    der_len = data[offset+1]
    if not der_len & 0x80:
        # this is the length
        der_len += 2
    elif der_len == 0x81:
        # length in one following octet
        der_len = data[offset+2] + 3
    elif der_len == 0x82:
        der_len = int.from_bytes(data[offset+2:offset+4], byteorder='big') + 4
    else:
        # longer than 65535 octets, or not DER at all
        raise U2FError('invalid DER length')
    return der_len

def u2f_parse_signature(signature):
    '''
    return a tuple r, s of integers contained in the DER encoded signature
    '''
    signature_asn1 = load(bytes(signature))
    r = signature_asn1[0].native
    s = signature_asn1[1].native
    return r, s

def u2f_verify_signature(signature, message, public_key):
    '''
    verify a DER encoded signature over the message against a public key in
    uncompressed x,y notation, raises ecdsa.BadSignatureError on mismatch
    '''
    if public_key[0] != 0x04:
        raise U2FError('invalid ECBitArray')
    # VerifyingKey wants just x and y in 64 bytes
    verifying_key = VerifyingKey.from_string(bytes(public_key[1:]),
            curve=NIST256p, hashfunc=sha256)
    r, s = u2f_parse_signature(signature)
    ecdsa_signature = r.to_bytes(32, byteorder='big') + \
        s.to_bytes(32, byteorder='big')
    return verifying_key.verify(ecdsa_signature, bytes(message))

def generate_key_handle():
    return os.urandom(KEY_HANDLE_LEN).hex()

def key_handle_length_string(key_handle):
    # length of the raw key handle, not of its hex representation
    return decimal_to_hex_byte(len(key_handle) // 2)

def registration_signature_base_string(application_parameter,
        challenge_parameter, key_handle, user_public_key):
    return FUTURE_USE_BYTE + application_parameter + challenge_parameter + \
        key_handle + user_public_key

def sign_signature_base_string(application_parameter, counter,
        challenge_parameter):
    return application_parameter + USER_PRESENCE_BYTE + counter + \
        challenge_parameter

def u2f_register(key_store, attestation, request):
    '''
    create a key pair for the application of the request, sign it with the
    attestation key and store it in the key store

    returns the registration response of the U2F javascript API
    '''
    if key_store.find_by_application_id(request.app_id) is not None:
        raise DuplicateApplicationError(
            'application key already exists for %s' % request.app_id)

    key_pair = generate_key_pair()

    client_data = client_data_string(request.challenge)
    client_data_hash = sha256_digest(client_data)
    application_id_hash = sha256_digest(request.app_id)

    key_handle = generate_key_handle()
    key_handle_length = key_handle_length_string(key_handle)

    base_string = registration_signature_base_string(application_id_hash,
        client_data_hash, key_handle, key_pair.public_hex)
    log.debug('registration base string %s', base_string)
    signature = attestation.sign(base_string)

    response = RESERVED_BYTE + key_pair.public_hex + key_handle_length + \
        key_handle + attestation.certificate_hex + signature

    key_store.add_credential(
        Credential.from_key_pair(request.app_id, key_handle, key_pair))
    log.info('registered key handle %s for %s', key_handle, request.app_id)

    return {
        # websafe-base64(raw registration response message)
        'registrationData': hextob64(response),
        # base64(UTF8(stringified(client data)))
        'clientData': client_data_b64(client_data),
        # unencoded key handle for convenience
        'keyHandle': key_handle,
    }

def _key_handle_hex(key_handle):
    try:
        return b64tohex(key_handle)
    except U2FError:
        log.debug('ignoring malformed key handle %r', key_handle)
        return None

def u2f_sign(key_store, request):
    '''
    sign the challenge of the request with the first of its key handles
    registered for the application, then advance that key's counter

    returns the sign response of the U2F javascript API
    '''
    for key_handle in request.key_handles:
        key_handle_hex = _key_handle_hex(key_handle)
        if key_handle_hex is not None and key_store.is_valid_key_handle_for_app_id(
                key_handle_hex, request.app_id):
            break
    else:
        raise DeviceIneligibleError(
            'not a valid device for this key handle/app id combination')

    credential = key_store.find_by_key_handle(key_handle_hex)
    if credential.app_id != request.app_id:
        raise DeviceIneligibleError('key handle and app id mismatch')

    client_data = client_data_string(request.challenge)
    client_data_hash = sha256_digest(client_data)
    application_id_hash = sha256_digest(request.app_id)
    counter_hex = counter_padding(credential.counter)

    base_string = sign_signature_base_string(application_id_hash, counter_hex,
        client_data_hash)
    log.debug('sign base string %s', base_string)
    signature = sign_hex(credential.private, base_string)

    signature_data = hextob64(USER_PRESENCE_BYTE + counter_hex + signature)

    if credential.counter >= COUNTER_WRAP:
        credential.counter = 0
    else:
        credential.counter += 1
    log.info('signed for %s with key handle %s, counter now %d',
        request.app_id, credential.key_handle, credential.counter)

    return {
        # websafe-base64(client data)
        'clientData': client_data_b64(client_data),
        # websafe-base64(raw response from U2F device)
        'signatureData': signature_data,
        'challenge': request.challenge,
        'appId': request.app_id,
        'keyHandle': hextob64(credential.key_handle),
    }

class U2F_RegisterResponse(bytearray):
    '''
    raw registration response message as returned by a U2F token
    '''
    pk_offset = 1
    pk_len = 65
    kh_offset = pk_offset + pk_len + 1

    @classmethod
    def from_registration_data(cls, registration_data):
        return cls(websafe_b64decode(registration_data))

    @property
    def reserved(self):
        return self[0]

    @property
    def public_key(self):
        offset = self.pk_offset
        return bytes(self[offset:offset+self.pk_len])

    @property
    def kh_len(self):
        return self[self.kh_offset-1]

    @property
    def key_handle(self):
        offset = self.kh_offset
        return bytes(self[offset:offset+self.kh_len])

    @property
    def ac_offset(self):
        return self.kh_offset + self.kh_len

    @property
    def ac_len(self):
        '''
        return length of DER-encoded X509 certificate
        '''
        return der_len(self, self.ac_offset)

    @property
    def attestation_certificate(self):
        offset = self.ac_offset
        return bytes(self[offset:offset+self.ac_len])

    @property
    def sig_offset(self):
        return self.ac_offset + self.ac_len

    @property
    def sig_len(self):
        '''
        return length of DER-encoded signature
        '''
        return der_len(self, self.sig_offset)

    @property
    def signature(self):
        offset = self.sig_offset
        return bytes(self[offset:offset+self.sig_len])

    def message(self, client_data, application):
        client_data_hash = sha256(client_data.encode('utf-8')).digest()
        application_hash = sha256(application.encode('utf-8')).digest()
        return b'\0' + application_hash + client_data_hash + \
            self.key_handle + self.public_key

    def verify_signature(self, client_data, application):
        message = self.message(client_data, application)
        public_key = certificate_public_key(self.attestation_certificate)
        return u2f_verify_signature(self.signature, message, public_key)

    def __str__(self):
        return '\n'.join([
                'U2F_RegisterResponse:',
                '    reserved: 0x%x' % self.reserved,
                '    public_key: %s' % self.public_key.hex(),
                '    key_handle_len: %d' % self.kh_len,
                '    key_handle: %s' % self.key_handle.hex(),
                '    attestation_certificate: %s' % self.attestation_certificate.hex(),
                '    signature: %s' % self.signature.hex(),
        ])

class U2F_AuthenticateResponse(bytearray):
    '''
    raw authentication response message, carried as signatureData
    '''
    co_offset = 1
    co_len = 4
    sig_offset = 5

    @classmethod
    def from_signature_data(cls, signature_data):
        return cls(websafe_b64decode(signature_data))

    @property
    def user_presence(self):
        return self[0]

    @property
    def counter(self):
        offset = self.co_offset
        return int.from_bytes(self[offset:offset+self.co_len], byteorder='big')

    @property
    def sig_len(self):
        '''
        return length of DER-encoded signature
        '''
        return der_len(self, self.sig_offset)

    @property
    def signature(self):
        offset = self.sig_offset
        return bytes(self[offset:offset+self.sig_len])

    def message(self, client_data, application):
        client_data_hash = sha256(client_data.encode('utf-8')).digest()
        application_hash = sha256(application.encode('utf-8')).digest()
        return application_hash + bytes([self.user_presence]) + \
            self.counter.to_bytes(4, byteorder='big') + client_data_hash

    def verify_signature(self, client_data, application, public_key):
        message = self.message(client_data, application)
        return u2f_verify_signature(self.signature, message, public_key)

    def __str__(self):
        return '\n'.join([
                'U2F_AuthenticateResponse:',
                '    user_presence: 0x%x' % self.user_presence,
                '    counter: %d' % self.counter,
                '    signature: %s' % self.signature.hex(),
        ])
