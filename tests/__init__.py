"""
Site widgets test suite

Structure:
- unit/: Unit tests for individual components (no network)
- integration/: Live API checks, skipped unless SITE_LIVE_TESTS=1
"""
