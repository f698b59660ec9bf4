import base64

import pytest

from virtualu2f import U2FToken

APP_ID = 'https://example.com'

def client_data_of(response):
    return base64.b64decode(response['clientData']).decode('utf-8')

@pytest.fixture
def token():
    return U2FToken()

@pytest.fixture
def registered(token):
    '''
    a token with one key registered for APP_ID, and the registration
    response
    '''
    result = token.handle_register_request({
        'appId': APP_ID,
        'registerRequests': [{'challenge': 'abc'}],
        'registeredKeys': [],
    })
    assert result.ok
    return token, result.response
