"""Tests for engine/variables.py."""

import pytest

from engine.variables import DEFAULT_CREDENTIAL_MAPPING, generate_variables_environment
from errors import SecretNotFoundError


def test_default_mapping():
    env = generate_variables_environment(
        {'accessKeyID': 'AK', 'accessKeySecret': 'SK', 'unrelated': 'x'},
        DEFAULT_CREDENTIAL_MAPPING,
    )
    assert env == {'TF_VAR_ACCESS_KEY_ID': 'AK', 'TF_VAR_ACCESS_KEY_SECRET': 'SK'}


def test_custom_mapping():
    env = generate_variables_environment({'token': 't0k'}, {'API_TOKEN': 'token'})
    assert env == {'TF_VAR_API_TOKEN': 't0k'}


def test_missing_key():
    with pytest.raises(SecretNotFoundError) as exc_info:
        generate_variables_environment({'accessKeyID': 'AK'}, DEFAULT_CREDENTIAL_MAPPING)
    assert 'accessKeySecret' in str(exc_info.value)
    assert exc_info.value.code == 'E202'
