# Copyright 2025 Wahyu Ardiansyah
# Licensed under the Apache License, Version 2.0

"""Kernel capability interface shared by all backends."""

from .base import Kernel, KernelFactory, KernelState

__all__ = [
    "Kernel",
    "KernelFactory",
    "KernelState",
]
