"""
Pytest configuration for backend tests.

Registers the custom markers used across the test suite.
"""


def pytest_configure(config):
    """Configure pytest with custom markers"""
    config.addinivalue_line(
        "markers", "realtime: mark test as realtime/WebSocket test"
    )
    config.addinivalue_line(
        "markers", "integration: mark test as integration test (services + DB + channel layer)"
    )
