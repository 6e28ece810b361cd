"""Options registry — default entry options owned by one cache."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from pydantic import ValidationError

from memfile.config.schema import CacheOptions
from memfile.errors.exceptions import ConfigurationError

logger = logging.getLogger(__name__)

OptionsLike = CacheOptions | Mapping[str, Any]


class OptionsRegistry:
    """Holds the defaults merged into every new entry.

    Mutated only through setup(); read when an entry is created.
    """

    def __init__(self, defaults: OptionsLike | None = None) -> None:
        self._defaults = CacheOptions()
        if defaults is not None:
            self.setup(defaults)

    @property
    def defaults(self) -> CacheOptions:
        return self._defaults.model_copy()

    def setup(self, options: OptionsLike | None = None) -> CacheOptions:
        """Overwrite the defaults for every key present in options.

        Omitted keys keep their previous value; unknown keys are stored as-is.
        """
        if options:
            self._defaults = _merge(self._defaults, options)
            logger.debug("Cache defaults updated: %s", self._defaults.model_dump())
        return self.defaults

    def resolve(self, options: OptionsLike | None = None) -> CacheOptions:
        """Return the current defaults overlaid with per-call options."""
        if not options:
            return self.defaults
        return _merge(self._defaults, options)


def _merge(base: CacheOptions, options: OptionsLike) -> CacheOptions:
    if isinstance(options, CacheOptions):
        update = options.model_dump(exclude_unset=True)
    else:
        update = dict(options)
    try:
        return CacheOptions.model_validate({**base.model_dump(), **update})
    except ValidationError as err:
        first = err.errors()[0]
        option = ".".join(str(p) for p in first.get("loc", ())) or None
        raise ConfigurationError(f"Invalid cache option: {err}", option=option) from err
