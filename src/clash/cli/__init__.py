"""Command line interface for Clash vesting operators."""
