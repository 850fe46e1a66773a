"""Traversal run loop for firstlink."""

from .interrupts import cancel_on_interrupt
from .traverser import Traverser, traverse_blocking

__all__ = ["Traverser", "cancel_on_interrupt", "traverse_blocking"]
