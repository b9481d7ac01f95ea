"""Short links with collision-free code allocation and atomic click tracking."""

__version__ = "1.0.0"
