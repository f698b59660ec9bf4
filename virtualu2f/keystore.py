import datetime, logging

log = logging.getLogger(__name__)

class Credential(object):
    '''
    the key pair a token generated for one application, selected at sign
    time through its key handle
    '''
    def __init__(self, app_id, key_handle, public, private, counter=0,
            generated=None):
        if generated is None:
            generated = datetime.datetime.now(datetime.timezone.utc)
        self.app_id = app_id
        self.key_handle = key_handle
        self.public = public
        self.private = private
        self.counter = counter
        self.generated = generated

    @classmethod
    def from_key_pair(cls, app_id, key_handle, key_pair):
        return cls(app_id, key_handle, key_pair.public_hex, key_pair.private_hex)

    @classmethod
    def from_dict(cls, record):
        return cls(record['appId'], record['keyHandle'], record['public'],
            record['private'], counter=record.get('counter', 0),
            generated=record.get('generated'))

    def to_dict(self):
        generated = self.generated
        if isinstance(generated, datetime.datetime):
            generated = generated.isoformat()
        return {
            'generated': generated,
            'appId': self.app_id,
            'keyHandle': self.key_handle,
            'public': self.public,
            'private': self.private,
            'counter': self.counter,
        }

    def __eq__(self, other):
        if not isinstance(other, Credential):
            return NotImplemented
        return self.to_dict() == other.to_dict()

    def __repr__(self):
        return 'Credential(app_id=%r, key_handle=%r, counter=%d)' % (
            self.app_id, self.key_handle, self.counter)

class KeyStore(object):
    def __init__(self, credentials=None):
        self.credentials = []
        if credentials:
            self.import_keys(credentials)

    def __len__(self):
        return len(self.credentials)

    def __iter__(self):
        return iter(self.credentials)

    def add_credential(self, credential):
        # uniqueness of the application id is up to the caller
        self.credentials.append(credential)

    def find_by_key_handle(self, key_handle):
        for credential in self.credentials:
            if credential.key_handle == key_handle:
                return credential
        return None

    def find_by_application_id(self, app_id):
        for credential in self.credentials:
            if credential.app_id == app_id:
                return credential
        return None

    def is_valid_key_handle_for_app_id(self, key_handle, app_id):
        '''
        return whether the key handle belongs to a key that may be used by
        the application with the given id
        '''
        credential = self.find_by_key_handle(key_handle)
        if credential is None:
            return False
        return credential.app_id == app_id

    def export_keys(self):
        return [credential.to_dict() for credential in self.credentials]

    def import_keys(self, records):
        self.credentials = [record if isinstance(record, Credential)
            else Credential.from_dict(record) for record in records]
        log.debug('imported %d keys', len(self.credentials))
