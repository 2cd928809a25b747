"""Test credentials from the environment.

Connection parameters for test databases come from variables named
``MB_<DRIVER>_TEST_<KEY>``, e.g. ``MB_POSTGRES_TEST_USER``.
"""

import os
from typing import Optional

from fixturedb.core.exceptions import MissingCredentialError


def _env_prefix() -> str:
    from fixturedb.config import get_config

    return get_config().credentials.env_prefix


def to_system_env_var_str(name: str) -> str:
    """``foo-bar`` -> ``FOO_BAR``"""
    return name.replace("-", "_").upper()


def credential_env_var(driver: str, key: str, prefix: Optional[str] = None) -> str:
    """Environment variable holding ``key`` for ``driver``."""
    prefix = prefix if prefix is not None else _env_prefix()
    return to_system_env_var_str(f"{prefix}-{driver}-test-{key}")


def db_test_env_var(driver: str, key: str, default: Optional[str] = None) -> Optional[str]:
    """Look up test environment var ``key`` for ``driver``, or ``default``.

    >>> db_test_env_var("mysql", "user")  # reads MB_MYSQL_TEST_USER
    """
    return os.environ.get(credential_env_var(driver, key), default)


def lookup_test_credential(driver: str, key: str, default: Optional[str] = None) -> str:
    """Same as ``db_test_env_var`` but raises if the value is missing.

    Raises:
        MissingCredentialError: If the variable is unset and no default was given
    """
    value = db_test_env_var(driver, key, default)
    if value is None:
        raise MissingCredentialError(driver, credential_env_var(driver, key))
    return value

