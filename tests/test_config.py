"""
Configuration validation and environment overrides.
"""

import dataclasses

import numpy as np
import pytest

from exthash import ConfigurationError, IndexConfig, configure


def test_defaults():
    config = IndexConfig()
    assert config.hash_modulo == 97
    assert config.max_global_depth == 4
    assert config.bucket_capacity == 3


@pytest.mark.parametrize(
    "field, value",
    [
        ("hash_modulo", 1),
        ("hash_modulo", 0),
        ("max_global_depth", 0),
        ("bucket_capacity", 0),
        ("bucket_capacity", -3),
        ("hash_modulo", 9.5),
        ("bucket_capacity", True),
    ],
)
def test_invalid_values_raise(field, value):
    with pytest.raises(ConfigurationError) as exc_info:
        IndexConfig(**{field: value})
    assert exc_info.value.field == field
    assert isinstance(exc_info.value, ValueError)


def test_configure_surfaces_errors_without_clamping():
    with pytest.raises(ConfigurationError):
        configure(hash_modulo=1)
    with pytest.raises(ConfigurationError):
        configure(max_global_depth=0)
    with pytest.raises(ConfigurationError):
        configure(bucket_capacity=0)


def test_numpy_integers_are_accepted_and_stored_as_int():
    config = IndexConfig(
        hash_modulo=np.int64(97),
        max_global_depth=np.uint8(4),
        bucket_capacity=np.int32(3),
    )
    assert config == IndexConfig()
    assert type(config.hash_modulo) is int
    assert type(config.max_global_depth) is int
    index = configure(hash_modulo=np.int64(16), bucket_capacity=np.int64(1))
    assert index.policy.address_width == 4
    assert index.insert(1).inserted
    with pytest.raises(ConfigurationError):
        IndexConfig(bucket_capacity=np.int64(0))


def test_config_is_immutable():
    config = IndexConfig()
    with pytest.raises(dataclasses.FrozenInstanceError):
        config.hash_modulo = 5


def test_replace_validates():
    config = IndexConfig().replace(bucket_capacity=5)
    assert config.bucket_capacity == 5
    assert config.hash_modulo == 97
    with pytest.raises(ConfigurationError):
        config.replace(hash_modulo=1)


def test_from_env_defaults(clean_env):
    assert IndexConfig.from_env() == IndexConfig()


def test_from_env_overrides(clean_env):
    clean_env.setenv("EXTHASH_HASH_MODULO", "31")
    clean_env.setenv("EXTHASH_BUCKET_CAPACITY", "2")
    config = IndexConfig.from_env()
    assert config.hash_modulo == 31
    assert config.bucket_capacity == 2
    assert config.max_global_depth == 4


def test_from_env_rejects_garbage():
    with pytest.raises(ConfigurationError):
        IndexConfig.from_env({"EXTHASH_MAX_GLOBAL_DEPTH": "four"})
    with pytest.raises(ConfigurationError):
        IndexConfig.from_env({"EXTHASH_HASH_MODULO": "1"})
