"""Engine configuration.

Environment-first, with constructor overrides for tests and embedding code.
"""

from __future__ import annotations

import os
from dataclasses import dataclass

# 19 bits covers every packed position, so canonical keys never share a slot.
DEFAULT_CACHE_BITS = 19
MAX_CACHE_BITS = 19

_TRUE = {"1", "true", "yes", "on"}
_FALSE = {"0", "false", "no", "off"}


@dataclass(frozen=True)
class EngineConfig:
    cache_bits: int = DEFAULT_CACHE_BITS
    verify_keys: bool = True

    def __post_init__(self) -> None:
        if not 1 <= self.cache_bits <= MAX_CACHE_BITS:
            raise ValueError(
                f"cache_bits must be in [1, {MAX_CACHE_BITS}], got {self.cache_bits}"
            )

    @property
    def cache_size(self) -> int:
        return 1 << self.cache_bits

    @classmethod
    def from_env(cls) -> "EngineConfig":
        """Read TTT_CACHE_BITS and TTT_CACHE_VERIFY, falling back to defaults."""
        bits_raw = os.getenv("TTT_CACHE_BITS")
        verify_raw = os.getenv("TTT_CACHE_VERIFY")
        bits = DEFAULT_CACHE_BITS
        if bits_raw:
            try:
                bits = int(bits_raw)
            except ValueError:
                raise ValueError(f"TTT_CACHE_BITS must be an integer, got {bits_raw!r}") from None
        verify = True
        if verify_raw:
            v = verify_raw.strip().lower()
            if v in _TRUE:
                verify = True
            elif v in _FALSE:
                verify = False
            else:
                raise ValueError(f"TTT_CACHE_VERIFY must be a boolean flag, got {verify_raw!r}")
        return cls(cache_bits=bits, verify_keys=verify)
