import enum

class U2F_ErrorCode(enum.IntEnum):
    OK = 0
    OTHER_ERROR = 1
    BAD_REQUEST = 2
    CONFIGURATION_UNSUPPORTED = 3
    DEVICE_INELIGIBLE = 4
    TIMEOUT = 5

error_strings = {
    U2F_ErrorCode.OK: 'Success',
    U2F_ErrorCode.OTHER_ERROR: 'An error otherwise not enumerated here',
    U2F_ErrorCode.BAD_REQUEST: 'The request cannot be processed',
    U2F_ErrorCode.CONFIGURATION_UNSUPPORTED:
        'Client configuration is not supported',
    U2F_ErrorCode.DEVICE_INELIGIBLE:
        'The presented device is not eligible for this request',
    U2F_ErrorCode.TIMEOUT: 'Timeout reached before request could be satisfied',
}

class U2FError(Exception):
    pass

class U2F_RequestError(U2FError):
    '''
    an expected rejection of a request, reported to the relying party
    with one of the U2F_ErrorCode values
    '''
    error_code = U2F_ErrorCode.OTHER_ERROR

    def __init__(self, message=None):
        if message is None:
            message = error_strings[self.error_code]
        super().__init__(message)

    @property
    def error_message(self):
        return str(self)

class DuplicateApplicationError(U2F_RequestError):
    error_code = U2F_ErrorCode.DEVICE_INELIGIBLE

class DeviceIneligibleError(U2F_RequestError):
    error_code = U2F_ErrorCode.DEVICE_INELIGIBLE

class InvalidRequestError(U2F_RequestError):
    error_code = U2F_ErrorCode.BAD_REQUEST

class CryptoPrimitiveError(U2FError):
    '''
    key generation, signing or digesting failed; never retried
    '''
    pass

class U2F_Result(object):
    def __init__(self, response=None, error=None):
        self.response = response
        self.error = error

    @classmethod
    def success(cls, response):
        return cls(response=response)

    @classmethod
    def failure(cls, error):
        return cls(error=error)

    @property
    def ok(self):
        return self.error is None

    @property
    def error_code(self):
        if self.error is None:
            return U2F_ErrorCode.OK
        return self.error.error_code

    def to_dict(self):
        '''
        return the response, or the error object handed to the callback
        of the U2F javascript API
        '''
        if self.ok:
            return self.response
        return {
            'errorCode': int(self.error.error_code),
            'errorMessage': self.error.error_message,
        }

    def __str__(self):
        if self.ok:
            return 'U2F_Result: ok'
        return 'U2F_Result: 0x%x %s' % (self.error_code, self.error)
