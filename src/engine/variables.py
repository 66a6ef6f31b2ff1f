"""Variables environment for the convergence engine."""

from typing import Mapping

from errors import SecretNotFoundError

VARIABLE_PREFIX = 'TF_VAR_'

# Engine variable name -> key inside the credential secret
DEFAULT_CREDENTIAL_MAPPING = {
    'ACCESS_KEY_ID': 'accessKeyID',
    'ACCESS_KEY_SECRET': 'accessKeySecret',
}


def generate_variables_environment(secret: Mapping[str, str], mapping: Mapping[str, str]) -> dict:
    """Build the TF_VAR_ environment carrying credentials.

    Deploy and destroy must call this with the same secret and mapping so
    that destroy authenticates exactly like the apply that created the
    resources.

    Args:
        secret: Credential data (e.g. from SecretStore.credentials)
        mapping: Variable name -> key in ``secret``

    Raises:
        SecretNotFoundError: If a mapped key is missing from the secret
    """
    env = {}
    for variable, key in mapping.items():
        if key not in secret:
            raise SecretNotFoundError(key)
        env[f'{VARIABLE_PREFIX}{variable}'] = secret[key]
    return env
