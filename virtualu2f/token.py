import logging, threading

from .attestation import AttestationIdentity
from .errors import U2F_RequestError, U2F_Result, InvalidRequestError
from .keystore import KeyStore
from .messages import RegisterRequest, SignRequest, U2F_MessageType, parse_request
from .u2f import u2f_register, u2f_sign

log = logging.getLogger(__name__)

class U2FToken(object):
    '''
    a software U2F token holding the keys it generated

    Requests are served one at a time; the key store is only changed after
    the cryptographic operation of a request succeeded.
    '''
    def __init__(self, keys=None, attestation=None):
        if attestation is None:
            attestation = AttestationIdentity.default()
        self.attestation = attestation
        self.key_store = KeyStore(keys)
        self._lock = threading.RLock()

    def __str__(self):
        return 'U2FToken %s, %d keys' % (self.attestation.subject,
            len(self.key_store))

    def export_keys(self):
        with self._lock:
            return self.key_store.export_keys()

    def import_keys(self, keys):
        with self._lock:
            self.key_store.import_keys(keys)

    def is_valid_key_handle_for_app_id(self, key_handle, app_id):
        with self._lock:
            return self.key_store.is_valid_key_handle_for_app_id(key_handle,
                app_id)

    def _handle(self, operation, request, Request, from_dict):
        try:
            if isinstance(request, dict):
                request = from_dict(request)
            elif not isinstance(request, Request):
                raise InvalidRequestError('expected a %s' % Request.type.value)
            with self._lock:
                response = operation(request)
        except U2F_RequestError as e:
            log.warning('rejected %s: %s', Request.type.value, e)
            return U2F_Result.failure(e)
        return U2F_Result.success(response)

    def _register(self, request):
        return u2f_register(self.key_store, self.attestation, request)

    def _sign(self, request):
        return u2f_sign(self.key_store, request)

    def handle_register_request(self, request):
        return self._handle(self._register, request, RegisterRequest,
            RegisterRequest.from_dict)

    def handle_sign_request(self, request):
        return self._handle(self._sign, request, SignRequest,
            SignRequest.from_dict)

    def handle_ref_code_register_request(self, request):
        '''
        handle a registration request in the layout of Google's reference
        code, {appId, challenge}
        '''
        return self._handle(self._register, request, RegisterRequest,
            RegisterRequest.from_ref_code_dict)

    def handle_ref_code_sign_request(self, request):
        '''
        handle a sign request in the layout of Google's reference code,
        {appId, challenge, keyHandle}
        '''
        return self._handle(self._sign, request, SignRequest,
            SignRequest.from_ref_code_dict)

    def handle_request(self, request):
        '''
        handle a message of either request type and layout
        '''
        try:
            request = parse_request(request)
        except U2F_RequestError as e:
            log.warning('rejected request: %s', e)
            return U2F_Result.failure(e)
        if request.type == U2F_MessageType.REGISTER_REQUEST:
            return self.handle_register_request(request)
        return self.handle_sign_request(request)

    # entry points of the U2F javascript API, returning what the API hands
    # to its callback
    def register(self, app_id, register_requests, registered_keys=None):
        result = self.handle_register_request({
            'appId': app_id,
            'registerRequests': register_requests,
            'registeredKeys': registered_keys or [],
        })
        return result.to_dict()

    def sign(self, app_id, challenge, registered_keys):
        result = self.handle_sign_request({
            'appId': app_id,
            'challenge': challenge,
            'registeredKeys': registered_keys,
        })
        return result.to_dict()
