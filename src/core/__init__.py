"""
Core domain models, mathematical primitives, and contracts.

This module contains the foundational building blocks of the market
simulation that are independent of storage, scheduling and delivery.
"""
