"""
sessionauth Tests

Test Organization:
- test_auth_service.py: session authority against an in-memory SQLite store
- test_auth_store_errors.py: store failure paths with mocked sessions
- api/: HTTP-level tests of the auth routes
- test_auth_client.py / test_session_cache.py: client mirror

Running Tests:
    # Run all tests
    pytest tests/

    # Run only API tests
    pytest tests/api/

    # Run with coverage
    pytest --cov=sessionauth tests/
"""
