"""Registry of robust estimation methods.

Method names are case, spacing and punctuation insensitive, so ``"LMedS"``,
``"l-med-s"`` and ``"lmeds"`` all resolve to the same method.

Examples:
    Registering a new method:

        >>> from polykit.robust.engine import ConsensusStrategy
        >>> from polykit.robust.methods import register_method
        >>> from polykit.robust.sampling import UniformSubsetSampler
        >>> from polykit.robust.scoring import TruncatedQuadraticScorer
        >>> register_method(
        ...     name="my-msac",
        ...     strategy=ConsensusStrategy("my-msac", UniformSubsetSampler, TruncatedQuadraticScorer),
        ...     aliases=("mymsac2",),
        ... )  # doctest: +SKIP
"""

from __future__ import annotations

import re
from functools import lru_cache
from typing import Iterable, Mapping

from polykit.exceptions import InvalidArgumentError
from polykit.robust.engine import BUILTIN_STRATEGIES, ConsensusStrategy, RobustEstimatorMethod

__all__ = ["register_method", "resolve_method", "available_methods", "DEFAULT_METHOD"]

DEFAULT_METHOD = RobustEstimatorMethod.PROSAC

_METHOD_SPECS: list[tuple[str, ConsensusStrategy, list[str]]] = [
    ("ransac", BUILTIN_STRATEGIES[RobustEstimatorMethod.RANSAC], ["random-sample-consensus"]),
    ("lmeds", BUILTIN_STRATEGIES[RobustEstimatorMethod.LMEDS], ["least-median-of-squares", "lmeds"]),
    ("msac", BUILTIN_STRATEGIES[RobustEstimatorMethod.MSAC], ["m-estimator-sample-consensus"]),
    ("prosac", BUILTIN_STRATEGIES[RobustEstimatorMethod.PROSAC], ["progressive-sample-consensus"]),
    ("promeds", BUILTIN_STRATEGIES[RobustEstimatorMethod.PROMEDS], ["progressive-median"]),
]


def _norm(s: str) -> str:
    """Normalize a method string for robust matching (case/spacing/punct insensitive)."""
    return re.sub(r"[^a-z0-9]+", "", s.lower())


@lru_cache(maxsize=1)
def _method_maps() -> tuple[Mapping[str, ConsensusStrategy], tuple[str, ...]]:
    """Construct and cache lookup tables for robust methods.

    Returns:
        A pair ``(method_map, canonical_names)`` where ``method_map`` maps
        normalized names and aliases to strategies and ``canonical_names``
        lists the sorted canonical names.
    """
    method_map: dict[str, ConsensusStrategy] = {}
    canonical: set[str] = set()
    for name, strategy, aliases in _METHOD_SPECS:
        k = _norm(name)
        method_map[k] = strategy
        canonical.add(k)
        for a in aliases:
            method_map[_norm(a)] = strategy
    return method_map, tuple(sorted(canonical))


def register_method(
    name: str,
    strategy: ConsensusStrategy,
    *,
    aliases: Iterable[str] = (),
) -> None:
    """Register a new robust method.

    The internal cache is cleared and rebuilt on the next lookup, so the
    method can be used by name immediately afterwards.

    Args:
        name: Canonical public name of the method.
        strategy: Sampler and scorer implementing the method.
        aliases: Additional accepted spellings.
    """
    _METHOD_SPECS.append((name, strategy, list(aliases)))
    _method_maps.cache_clear()


def resolve_method(method: RobustEstimatorMethod | ConsensusStrategy | str) -> ConsensusStrategy:
    """Resolve a method enum, name, alias or strategy to a strategy.

    Raises:
        InvalidArgumentError: If the name is not registered.
    """
    if isinstance(method, ConsensusStrategy):
        return method
    if isinstance(method, RobustEstimatorMethod):
        method = method.value
    method_map, canon = _method_maps()
    try:
        return method_map[_norm(str(method))]
    except KeyError:
        opts = ", ".join(canon)
        raise InvalidArgumentError(f"Unknown robust method '{method}'. Choose one of {{{opts}}}.") from None


def available_methods() -> tuple[str, ...]:
    """Returns the canonical names of all registered methods."""
    return _method_maps()[1]
