import pytest

from virtualu2f.encoding import (
    b64tohex,
    client_data_b64,
    client_data_string,
    counter_padding,
    decimal_to_hex_byte,
    hextob64,
    websafe_b64decode,
    websafe_b64encode,
)
from virtualu2f.errors import U2FError


def test_websafe_alphabet_without_padding():
    assert websafe_b64encode(b'\xfb\xff') == '-_8'
    assert websafe_b64decode('-_8') == b'\xfb\xff'


def test_websafe_decode_accepts_standard_alphabet():
    assert websafe_b64decode('+/8=') == b'\xfb\xff'


def test_hextob64():
    assert hextob64('fbff') == '-_8'
    # odd length is padded with a trailing zero nibble
    assert hextob64('fbf') == hextob64('fbf0')


def test_b64tohex():
    assert b64tohex('-_8') == 'fbff'


def test_b64tohex_invalid():
    with pytest.raises(U2FError):
        b64tohex('a')


def test_decimal_to_hex_byte():
    assert decimal_to_hex_byte(0) == '00'
    assert decimal_to_hex_byte(16) == '10'
    assert decimal_to_hex_byte(255) == 'ff'


def test_decimal_to_hex_byte_exceeds_byte():
    with pytest.raises(U2FError):
        decimal_to_hex_byte(256)


def test_counter_padding():
    assert counter_padding(0) == '00000000'
    assert counter_padding(1) == '00000001'
    assert counter_padding(65535) == '0000ffff'


def test_client_data_string():
    assert client_data_string('abc') == '{"challenge":"abc"}'
    assert client_data_string('ä/"') == '{"challenge":"ä/\\""}'


def test_client_data_b64():
    assert client_data_b64('{"challenge":"abc"}') == \
        'eyJjaGFsbGVuZ2UiOiJhYmMifQ=='
