# Copyright 2025 Wahyu Ardiansyah
# Licensed under the Apache License, Version 2.0

"""
Kernelbind Core Types

Value types used as catalog lookup keys: operator identities, opset
version ranges, and attribute value aliases.
"""

import math
from dataclasses import dataclass
from typing import Optional, Union

import numpy as np

# Standard ONNX operator domain. The empty string is an alias for it.
DEFAULT_DOMAIN = "ai.onnx"


def normalize_domain(domain: Optional[str]) -> str:
    """Map the empty/None domain onto the standard domain name."""
    if not domain:
        return DEFAULT_DOMAIN
    return domain


@dataclass(frozen=True)
class VersionRange:
    """
    Inclusive range of opset versions.

    ``end=None`` means open-ended (``7+``).
    """

    start: int
    end: Optional[int] = None

    def __post_init__(self):
        if self.start < 0:
            raise ValueError(f"Opset version must be non-negative, got {self.start}")
        if self.end is not None and self.end < self.start:
            raise ValueError(f"Invalid version range {self.start}-{self.end}")

    @classmethod
    def parse(cls, selector: Union[str, int, "VersionRange"]) -> "VersionRange":
        """
        Parse a version selector.

        Accepted forms:
            "7"     exactly version 7
            "7-12"  versions 7 through 12 inclusive
            "7+"    version 7 and later
        """
        if isinstance(selector, VersionRange):
            return selector
        if isinstance(selector, int):
            return cls(selector, selector)

        text = selector.strip()
        try:
            if text.endswith("+"):
                return cls(int(text[:-1]))
            if "-" in text:
                start, end = text.split("-", 1)
                return cls(int(start), int(end))
            version = int(text)
        except ValueError as e:
            raise ValueError(f"Invalid version selector: '{selector}'") from e
        return cls(version, version)

    def contains(self, version: int) -> bool:
        """Check if a version falls inside this range."""
        if version < self.start:
            return False
        return self.end is None or version <= self.end

    @property
    def width(self) -> float:
        """Number of versions covered (infinite when open-ended)."""
        if self.end is None:
            return math.inf
        return self.end - self.start + 1

    def __contains__(self, version: int) -> bool:
        return self.contains(version)

    def __str__(self) -> str:
        if self.end is None:
            return f"{self.start}+"
        if self.end == self.start:
            return str(self.start)
        return f"{self.start}-{self.end}"


@dataclass(frozen=True)
class OperatorIdentity:
    """
    Identity of an operator request: (op_type, domain, version).

    Two identities are equal iff all three fields match.
    """

    op_type: str
    domain: str = DEFAULT_DOMAIN
    version: int = 1

    def __post_init__(self):
        # frozen dataclass, so normalize through object.__setattr__
        object.__setattr__(self, "domain", normalize_domain(self.domain))
        if self.version < 0:
            raise ValueError(f"Opset version must be non-negative, got {self.version}")

    def __str__(self) -> str:
        return f"{self.domain}::{self.op_type}@{self.version}"


# Attribute value types
AttributeValue = Union[
    int, float, str, np.ndarray, list[int], list[float], list[str], list[np.ndarray]
]
AttributeMap = dict[str, AttributeValue]
