import base64, binascii, json

from .errors import U2FError

def websafe_b64encode(data):
    '''
    base64 with '-' and '_' instead of '+' and '/' and the '=' padding
    stripped
    '''
    return base64.urlsafe_b64encode(bytes(data)).decode('ascii').rstrip('=')

def websafe_b64decode(data):
    # accept both alphabets, padded or not
    data = data.replace('+', '-').replace('/', '_').rstrip('=')
    data += '=' * (-len(data) % 4)
    return base64.urlsafe_b64decode(data.encode('ascii'))

def hextob64(data):
    # odd hex strings are padded out with a trailing nibble
    if len(data) % 2:
        data = data + '0'
    return websafe_b64encode(bytes.fromhex(data))

def b64tohex(data):
    try:
        return websafe_b64decode(data).hex()
    except (binascii.Error, ValueError) as e:
        raise U2FError('invalid websafe base64 %r' % data) from e

def decimal_to_hex_byte(dec):
    '''
    return the two digit hex representation of a number fitting in one byte
    '''
    if dec < 0 or dec > 255:
        raise U2FError('number %d exceeds a byte' % dec)
    return '%02x' % dec

def counter_padding(counter):
    # 4 bytes, big endian
    return '%08x' % (counter & 0xffffffff)

def client_data_string(challenge):
    '''
    return the client data as compact JSON, the exact string that gets
    hashed and handed back to the relying party
    '''
    return json.dumps({'challenge': challenge}, separators=(',', ':'),
        ensure_ascii=False)

def client_data_b64(client_data):
    return base64.b64encode(client_data.encode('utf-8')).decode('ascii')
