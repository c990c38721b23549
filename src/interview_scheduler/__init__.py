#
# For licensing see accompanying LICENSE file.
# Copyright © 2025 Apple Inc. All Rights Reserved.
#
from importlib.metadata import PackageNotFoundError, version  # pragma: no cover

from omegaconf import OmegaConf

from interview_scheduler.constants import WEEKDAY_NAMES

try:
    # Change here if project is renamed and does not equal the package name
    dist_name = "interview-scheduler"
    __version__ = version(dist_name)
except PackageNotFoundError:  # pragma: no cover
    __version__ = "unknown"
finally:
    del version, PackageNotFoundError


def _day_numbers(*names: str) -> list[int]:
    """Resolve weekday names (``${days:Monday,Friday}``) to ``datetime.weekday()``
    numbers, so rule-set YAML files can name days rather than index them."""
    lookup = {name.lower(): index for index, name in enumerate(WEEKDAY_NAMES)}
    try:
        return [lookup[name.strip().lower()] for name in names]
    except KeyError as e:
        raise ValueError(f"Unknown weekday name: {e.args[0]}") from e


OmegaConf.register_new_resolver("days", _day_numbers, replace=True)
