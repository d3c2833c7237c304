"""
Test suite for the seller-profile load tests.

This package contains:
- unit/: fast tests of payload builders, checks, token issuance,
  workflows, scenario shapes, thresholds and profiles.  No network
  access; every HTTP call goes to an in-memory fake session.
"""
