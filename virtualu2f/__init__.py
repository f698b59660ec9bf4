import logging

__version__ = '0.1.0'

logging.getLogger(__name__).addHandler(logging.NullHandler())

from .attestation import AttestationIdentity
from .errors import (
    U2FError,
    U2F_ErrorCode,
    U2F_Result,
    CryptoPrimitiveError,
    DeviceIneligibleError,
    DuplicateApplicationError,
    InvalidRequestError,
)
from .keystore import Credential, KeyStore
from .messages import RegisterRequest, SignRequest, parse_request
from .token import U2FToken
