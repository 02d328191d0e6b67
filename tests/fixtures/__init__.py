"""
Pytest fixtures for the LinkAttach test suite.

Fixtures are organized by concern:
- http_mocking: scripted in-memory fetcher and httpx MockTransport helpers
- payloads: sample file bodies with known signatures
"""
