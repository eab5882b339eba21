"""
Test suite for underworld-market-sim

Contains:
- tests/unit/          : Unit tests for individual modules and the tick orchestrator
"""
