"""Library configuration loaded from environment variables.

All configuration values have sensible defaults; the environment only
overrides them.

Fail-fast validation:
    ``from_env()`` raises ``ConfigValidationError`` if any value is out
    of its valid range, so bad configuration surfaces at startup rather
    than in the middle of a join or a write.
"""

from __future__ import annotations

import functools
import os
from dataclasses import dataclass

from featurestack.core.constants import DEFAULT_ID_FIELD, DEFAULT_VECTOR_DRIVER
from featurestack.core.exceptions import FeatureStackError

_TRUE_VALUES = frozenset({"1", "true", "yes", "on"})
_FALSE_VALUES = frozenset({"0", "false", "no", "off", ""})


class ConfigValidationError(FeatureStackError):
    """Raised when configuration values are out of valid range.

    Attributes:
        key: The configuration key that failed validation.
        value: The invalid value.
        message: Human-readable description of the valid range.
    """

    default_operation = "config"
    default_code = "CONFIG_VALIDATION_FAILED"

    def __init__(self, key: str, value: object, message: str) -> None:
        self.key = key
        self.value = value
        super().__init__(f"Invalid configuration {key}={value!r}: {message}")


@dataclass(frozen=True, slots=True)
class FeatureStackConfig:
    """Immutable library configuration.

    Attributes:
        strict_crs_overwrite: Raise ``IncompatibleDescriptorError`` instead of
            logging a warning when a defined CRS is overwritten.
        id_field: Attribute field that carries unit identifiers in vector files.
        vector_driver: Default fiona/OGR driver used when writing datasets.
        max_workers: Thread pool size for ordered fan-out helpers.
    """

    strict_crs_overwrite: bool = False
    id_field: str = DEFAULT_ID_FIELD
    vector_driver: str = DEFAULT_VECTOR_DRIVER
    max_workers: int = 4

    @classmethod
    def from_env(cls) -> FeatureStackConfig:
        """Load and validate configuration from environment variables.

        Raises:
            ConfigValidationError: If a value is out of range, a boolean
                flag is unrecognised, or a required string is empty.
            ValueError: If ``FEATURESTACK_MAX_WORKERS`` is not an integer.
        """
        config = cls(
            strict_crs_overwrite=_parse_bool(
                "FEATURESTACK_STRICT_CRS", os.getenv("FEATURESTACK_STRICT_CRS", "false")
            ),
            id_field=os.getenv("FEATURESTACK_ID_FIELD", DEFAULT_ID_FIELD),
            vector_driver=os.getenv("FEATURESTACK_VECTOR_DRIVER", DEFAULT_VECTOR_DRIVER),
            max_workers=int(os.getenv("FEATURESTACK_MAX_WORKERS", "4")),
        )
        _validate(config)
        return config


def _parse_bool(key: str, raw: str) -> bool:
    value = raw.strip().lower()
    if value in _TRUE_VALUES:
        return True
    if value in _FALSE_VALUES:
        return False
    raise ConfigValidationError(key, raw, "must be one of true/false/1/0/yes/no/on/off")


def _validate(config: FeatureStackConfig) -> None:
    """Validate configuration ranges.  Raises ``ConfigValidationError``."""
    if config.max_workers < 1:
        raise ConfigValidationError(
            "FEATURESTACK_MAX_WORKERS",
            config.max_workers,
            "must be >= 1",
        )

    if not config.id_field:
        raise ConfigValidationError(
            "FEATURESTACK_ID_FIELD",
            config.id_field,
            "must not be empty",
        )

    if not config.vector_driver:
        raise ConfigValidationError(
            "FEATURESTACK_VECTOR_DRIVER",
            config.vector_driver,
            "must not be empty",
        )


@functools.lru_cache(maxsize=1)
def get_config() -> FeatureStackConfig:
    """Process-wide configuration, loaded from the environment on first use.

    Call ``get_config.cache_clear()`` after changing the environment.
    """
    return FeatureStackConfig.from_env()
