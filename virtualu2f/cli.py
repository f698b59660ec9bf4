# standard python modules
import json, logging, os, sys

#  python packages
import asyncclick as click

# local modules
from .attestation import AttestationIdentity
from .errors import U2FError
from .keyfile import load_keys, save_keys
from .token import U2FToken
from .encoding import hextob64
from .u2f import U2F_AuthenticateResponse, U2F_RegisterResponse

log = logging.getLogger('virtualu2f')

def default_key_file():
    return os.path.join(click.get_app_dir('virtual-u2f'), 'keys.json')

def echo_json(data):
    click.echo(json.dumps(data, indent=2))

def log_response(response):
    if 'registrationData' in response:
        message = U2F_RegisterResponse.from_registration_data(
            response['registrationData'])
    else:
        message = U2F_AuthenticateResponse.from_signature_data(
            response['signatureData'])
    log.debug('%s', message)

def finish(context, result):
    '''
    print the result of a request, persisting the keys after success
    '''
    echo_json(result.to_dict())
    if not result.ok:
        context.exit(1)
    log_response(result.response)
    options = context.obj
    save_keys(options['keys'], options['token'].export_keys(),
        password=options['password'])

@click.group()
@click.option('--keys', '-k', 'key_file', envvar='VIRTUAL_U2F_KEYS',
    type=click.Path(dir_okay=False), default=default_key_file,
    help='file the token keys are kept in')
@click.option('--password', '-p', envvar='VIRTUAL_U2F_PASSWORD',
    help='password the key file is encrypted with')
@click.option('--attestation-key', envvar='VIRTUAL_U2F_ATTESTATION_KEY',
    type=click.Path(exists=True, dir_okay=False),
    help='PEM encoded attestation private key')
@click.option('--attestation-cert', envvar='VIRTUAL_U2F_ATTESTATION_CERT',
    type=click.Path(exists=True, dir_okay=False),
    help='PEM or DER encoded attestation certificate')
@click.option('--verbose', '-v', is_flag=True, help='log debug output')
@click.pass_context
async def cli(context, key_file, password, attestation_key, attestation_cert,
        verbose):
    if verbose:
        log.setLevel(logging.DEBUG)
        h = logging.StreamHandler(sys.stderr)
        h.setLevel(logging.DEBUG)
        log.addHandler(h)
    if bool(attestation_key) != bool(attestation_cert):
        raise click.UsageError(
            '--attestation-key and --attestation-cert go together')
    try:
        if attestation_key:
            attestation = AttestationIdentity.from_files(attestation_key,
                attestation_cert)
        else:
            attestation = AttestationIdentity.default()
        keys = load_keys(key_file, password=password)
    except U2FError as e:
        raise click.ClickException(str(e))
    context.obj = {
        'keys': key_file,
        'password': password,
        'token': U2FToken(keys, attestation=attestation),
    }

@cli.command(help='register the token with an application')
@click.argument('app_id')
@click.argument('challenge')
@click.pass_context
async def register(context, app_id, challenge):
    token = context.obj['token']
    result = token.handle_register_request({
        'appId': app_id,
        'registerRequests': [{'challenge': challenge}],
    })
    finish(context, result)

@cli.command(help='sign a challenge with a registered key')
@click.argument('app_id')
@click.argument('challenge')
@click.argument('key_handles', nargs=-1, required=True)
@click.option('--hex', 'hex_key_handles', is_flag=True,
    help='key handles are hex encoded as printed by register')
@click.pass_context
async def sign(context, app_id, challenge, key_handles, hex_key_handles):
    token = context.obj['token']
    if hex_key_handles:
        try:
            key_handles = [hextob64(key_handle) for key_handle in key_handles]
        except ValueError:
            raise click.BadParameter('key handles must be hex')
    result = token.handle_sign_request({
        'appId': app_id,
        'challenge': challenge,
        'registeredKeys': [{'keyHandle': key_handle}
            for key_handle in key_handles],
    })
    finish(context, result)

@cli.command(name='list', help='show the keys of the token')
@click.pass_context
async def list_keys(context):
    token = context.obj['token']
    click.echo(token)
    for key in token.export_keys():
        click.echo('%s  %s  counter %d' % (key['keyHandle'], key['appId'],
            key['counter']))

def main():
    return cli(_anyio_backend="asyncio")

if __name__ == '__main__':
    sys.exit(main())
