# standard python modules
import base64, json, logging, os, tempfile
from hashlib import pbkdf2_hmac

# python packages
from cryptography.fernet import Fernet, InvalidToken

# local modules
from .errors import U2FError

log = logging.getLogger(__name__)

KEY_STORE_NAME = 'virtual-u2f-key-store-0.0.1'
PBKDF2_ITERATIONS = 50000

class KeyFileError(U2FError):
    pass

def _fernet(password, salt, iterations):
    secret = pbkdf2_hmac('sha256', password.encode('utf-8'), salt, iterations)
    return Fernet(base64.urlsafe_b64encode(secret))

def dump_keys(keys, password=None, iterations=PBKDF2_ITERATIONS):
    '''
    return the exported keys as key file document, the key list encrypted
    when a password is given
    '''
    document = {'name': KEY_STORE_NAME}
    if password is None:
        document['keys'] = keys
        return document
    salt = os.urandom(32)
    fernet = _fernet(password, salt, iterations)
    document.update({
        'salt': base64.b64encode(salt).decode('ascii'),
        'iterations': iterations,
        'keys_encrypted': fernet.encrypt(
            json.dumps(keys).encode('utf-8')).decode('ascii'),
    })
    return document

def parse_keys(document, password=None):
    if not isinstance(document, dict) or document.get('name') != KEY_STORE_NAME:
        raise KeyFileError('not a %s document' % KEY_STORE_NAME)
    if 'keys_encrypted' not in document:
        return document.get('keys', [])
    if password is None:
        raise KeyFileError('key file is encrypted, password required')
    try:
        salt = base64.b64decode(document['salt'])
        fernet = _fernet(password, salt, document['iterations'])
        keys_encrypted = document['keys_encrypted'].encode('ascii')
    except (KeyError, TypeError, ValueError, AttributeError) as e:
        raise KeyFileError('invalid encrypted key file: %s' % e) from e
    try:
        keys = fernet.decrypt(keys_encrypted)
    except InvalidToken:
        raise KeyFileError('invalid password for key file')
    return json.loads(keys.decode('utf-8'))

def save_keys(path, keys, password=None):
    document = dump_keys(keys, password=password)
    directory = os.path.dirname(path)
    if directory:
        os.makedirs(directory, exist_ok=True)
    # owner readable only, replaced in one step
    fd, temporary_path = tempfile.mkstemp(dir=directory or '.', prefix='.keys-')
    try:
        with os.fdopen(fd, 'w') as f:
            json.dump(document, f, indent=2)
        os.chmod(temporary_path, 0o600)
        os.replace(temporary_path, path)
    except BaseException:
        os.unlink(temporary_path)
        raise
    log.debug('saved %d keys to %s', len(keys), path)

def load_keys(path, password=None):
    if not os.path.exists(path):
        log.debug('no key file %s, starting empty', path)
        return []
    with open(path, 'r') as f:
        try:
            document = json.load(f)
        except ValueError as e:
            raise KeyFileError('invalid key file %s: %s' % (path, e))
    keys = parse_keys(document, password=password)
    log.debug('loaded %d keys from %s', len(keys), path)
    return keys
