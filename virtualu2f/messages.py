import enum

from .errors import InvalidRequestError

class U2F_MessageType(str, enum.Enum):
    REGISTER_REQUEST = 'u2f_register_request'
    SIGN_REQUEST = 'u2f_sign_request'
    REGISTER_RESPONSE = 'u2f_register_response'
    SIGN_RESPONSE = 'u2f_sign_response'

def _field(request, name, kind=str):
    try:
        value = request[name]
    except (KeyError, TypeError):
        raise InvalidRequestError('missing %s in request' % name)
    if not isinstance(value, kind):
        raise InvalidRequestError('invalid %s in request' % name)
    if isinstance(value, str):
        try:
            value.encode('utf-8')
        except UnicodeEncodeError:
            raise InvalidRequestError('%s in request is not valid UTF-8' % name)
    return value

class RegisterRequest(object):
    type = U2F_MessageType.REGISTER_REQUEST

    @staticmethod
    def is_ref_code(request):
        return 'registerRequests' not in request

    def __init__(self, app_id, challenge, registered_keys=()):
        self.app_id = app_id
        self.challenge = challenge
        self.registered_keys = list(registered_keys)

    @classmethod
    def from_dict(cls, request):
        '''
        {appId, registerRequests: [{challenge}], registeredKeys}, only the
        first of the register requests is served
        '''
        app_id = _field(request, 'appId')
        register_requests = _field(request, 'registerRequests', list)
        if not register_requests:
            raise InvalidRequestError('no registerRequests in request')
        challenge = _field(register_requests[0], 'challenge')
        registered_keys = request.get('registeredKeys') or []
        return cls(app_id, challenge, registered_keys)

    @classmethod
    def from_ref_code_dict(cls, request):
        # {appId, challenge}
        return cls.from_dict({
            'appId': request.get('appId'),
            'registerRequests': [{'challenge': request.get('challenge')}],
            'registeredKeys': request.get('registeredKeys') or [],
        })

class SignRequest(object):
    type = U2F_MessageType.SIGN_REQUEST

    @staticmethod
    def is_ref_code(request):
        return 'registeredKeys' not in request and 'keyHandle' in request

    def __init__(self, app_id, challenge, key_handles):
        self.app_id = app_id
        self.challenge = challenge
        # websafe base64 encoded, in the order the relying party sent them
        self.key_handles = list(key_handles)

    @classmethod
    def from_dict(cls, request):
        app_id = _field(request, 'appId')
        challenge = _field(request, 'challenge')
        registered_keys = _field(request, 'registeredKeys', list)
        key_handles = [_field(registered_key, 'keyHandle')
            for registered_key in registered_keys]
        return cls(app_id, challenge, key_handles)

    @classmethod
    def from_ref_code_dict(cls, request):
        # {appId, challenge, keyHandle}
        return cls.from_dict({
            'appId': request.get('appId'),
            'challenge': request.get('challenge'),
            'registeredKeys': [{'keyHandle': request.get('keyHandle')}],
        })

def parse_request(request):
    '''
    return the canonical request for a message of either layout, the type
    being taken from the 'type' field
    '''
    if isinstance(request, (RegisterRequest, SignRequest)):
        return request
    if not isinstance(request, dict):
        raise InvalidRequestError('request is not an object')
    try:
        message_type = U2F_MessageType(request.get('type'))
    except ValueError:
        raise InvalidRequestError('invalid request type %r' % request.get('type'))
    if message_type == U2F_MessageType.REGISTER_REQUEST:
        Request = RegisterRequest
    elif message_type == U2F_MessageType.SIGN_REQUEST:
        Request = SignRequest
    else:
        raise InvalidRequestError('%s is not a request' % message_type.value)
    if Request.is_ref_code(request):
        return Request.from_ref_code_dict(request)
    return Request.from_dict(request)
