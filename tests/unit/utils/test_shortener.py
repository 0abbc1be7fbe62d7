"""Unit tests for short code generation and alias validation in shortener.py."""

import re

import pytest

from linkshortener.constants import ShortCode
from linkshortener.exceptions import AliasBadFormatError, AliasReservedError
from linkshortener.utils import shortener
from linkshortener.utils.shortener import ALPHABET, generate_shortcode, is_reserved, validate_alias


CODE_RE = re.compile(r'^[A-Za-z0-9_-]{3,32}$')


# -------------------------------
# Short code generation
# -------------------------------


@pytest.mark.parametrize('length', [3, 6, 7, 32])
def test_generate_shortcode_length_and_alphabet(length):
    code = generate_shortcode(length)
    assert len(code) == length
    assert CODE_RE.match(code)
    assert set(code) <= set(ALPHABET)


def test_generate_shortcode_default_length():
    assert len(generate_shortcode()) == ShortCode.DEFAULT_LENGTH


def test_generate_shortcode_is_random():
    codes = {generate_shortcode(8) for _ in range(200)}
    assert len(codes) == 200


def test_generate_shortcode_custom_alphabet():
    code = generate_shortcode(10, alphabet='ab-_')
    assert set(code) <= set('ab-_')


def test_generate_shortcode_skips_reserved_codes(monkeypatch):
    draws = iter('apiabc')
    monkeypatch.setattr(shortener.secrets, 'choice', lambda alphabet: next(draws))

    assert generate_shortcode(3) == 'abc'


@pytest.mark.parametrize('length', [2, 33, 0, -1])
def test_generate_shortcode_with_bad_length(length):
    with pytest.raises(ValueError):
        generate_shortcode(length)


@pytest.mark.parametrize('length', ['6', 6.0, None, True])
def test_generate_shortcode_with_bad_length_type(length):
    with pytest.raises(TypeError):
        generate_shortcode(length)


@pytest.mark.parametrize('alphabet', ['', 'abc/', 'ab c', 'äbc'])
def test_generate_shortcode_with_unsafe_alphabet(alphabet):
    with pytest.raises(ValueError):
        generate_shortcode(6, alphabet=alphabet)


# -------------------------------
# Alias validation
# -------------------------------


@pytest.mark.parametrize('alias', ['abc', 'my-alias', 'My_Alias_2025', 'a' * 32, '___'])
def test_validate_alias_accepts(alias):
    assert validate_alias(alias) == alias


@pytest.mark.parametrize('alias', ['ab', 'a' * 33, 'has space', 'slash/es', 'dot.ted', 'ünï', 'abc\n', '', None, 123])
def test_validate_alias_bad_format(alias):
    with pytest.raises(AliasBadFormatError):
        validate_alias(alias)


@pytest.mark.parametrize('alias', ['api', 'API', 'Admin', 'login', 'signup', 'health', 'redirect'])
def test_validate_alias_reserved(alias):
    with pytest.raises(AliasReservedError):
        validate_alias(alias)


def test_single_letter_reserved_code_is_rejected_by_format_first():
    # 'r' is reserved but also too short
    with pytest.raises(AliasBadFormatError):
        validate_alias('r')


def test_is_reserved_is_case_insensitive():
    assert is_reserved('HeAlTh')
    assert not is_reserved('healthy')
