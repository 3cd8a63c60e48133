from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Callable, Optional, TypeVar

from dotenv import load_dotenv

from .core.ranking import RankParams

T = TypeVar("T")

DEFAULT_SIMILARITY_THRESHOLD = 0.1
DEFAULT_NEIGHBORHOOD_SIZE = 10
DEFAULT_PARALLEL_MIN_CANDIDATES = 1000


class ConfigError(RuntimeError):
    """Raised when required configuration is missing or invalid."""


@dataclass(frozen=True)
class EngineConfig:
    """
    Policy settings for neighbourhood queries on a built matrix.

    Attributes:
        similarity_threshold: Scores must be strictly greater than this to be ranked.
        neighborhood_size: Default number of neighbours returned by top-N queries.
        max_workers: Thread pool size for candidate scoring. None scores serially.
        parallel_min_candidates: Smallest candidate set that is scored on the pool.
    """
    similarity_threshold: float = DEFAULT_SIMILARITY_THRESHOLD
    neighborhood_size: int = DEFAULT_NEIGHBORHOOD_SIZE
    max_workers: Optional[int] = None
    parallel_min_candidates: int = DEFAULT_PARALLEL_MIN_CANDIDATES

    def rank_params(self, top_n: Optional[int] = None) -> RankParams:
        """
        Build the selector parameters for one query.

        Args:
            top_n: Override for the neighbourhood size.
        """
        return RankParams(
            top_n=self.neighborhood_size if top_n is None else top_n,
            min_similarity=self.similarity_threshold,
            exclude_self=True,
            max_workers=self.max_workers,
            parallel_min_candidates=self.parallel_min_candidates,
        )


def _read_env(env_var_name: str, parse: Callable[[str], T], default: T) -> T:
    raw = os.getenv(env_var_name)
    if raw is None or not raw.strip():
        return default
    try:
        return parse(raw.strip())
    except ValueError as exc:
        raise ConfigError(f"Environment variable {env_var_name!r} has invalid value {raw!r}.") from exc


def load_engine_config_from_env(
    prefix: str = "CFENGINE_",
    dotenv_path: Optional[str] = None,
) -> EngineConfig:
    """
    Load engine configuration from environment variables.

    Reads <prefix>SIMILARITY_THRESHOLD, <prefix>NEIGHBORHOOD_SIZE,
    <prefix>MAX_WORKERS and <prefix>PARALLEL_MIN_CANDIDATES. Unset variables
    keep their defaults.

    Args:
        prefix: Prefix shared by all engine environment variables.
        dotenv_path: Explicit .env file. None searches upwards for one.

    Raises:
        ConfigError: If a variable cannot be parsed or is out of range.
    """
    load_dotenv(dotenv_path)

    threshold = _read_env(f"{prefix}SIMILARITY_THRESHOLD", float, DEFAULT_SIMILARITY_THRESHOLD)
    neighborhood_size = _read_env(f"{prefix}NEIGHBORHOOD_SIZE", int, DEFAULT_NEIGHBORHOOD_SIZE)
    max_workers = _read_env(f"{prefix}MAX_WORKERS", int, None)
    parallel_min = _read_env(
        f"{prefix}PARALLEL_MIN_CANDIDATES",
        int,
        DEFAULT_PARALLEL_MIN_CANDIDATES,
    )

    if neighborhood_size < 0:
        raise ConfigError(f"{prefix}NEIGHBORHOOD_SIZE must be >= 0, got {neighborhood_size}.")
    if max_workers is not None and max_workers <= 0:
        raise ConfigError(f"{prefix}MAX_WORKERS must be > 0, got {max_workers}.")
    if parallel_min < 0:
        raise ConfigError(f"{prefix}PARALLEL_MIN_CANDIDATES must be >= 0, got {parallel_min}.")

    return EngineConfig(
        similarity_threshold=threshold,
        neighborhood_size=neighborhood_size,
        max_workers=max_workers,
        parallel_min_candidates=parallel_min,
    )
