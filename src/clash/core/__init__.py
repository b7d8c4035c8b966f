"""Core token and vesting components."""
