"""
Root conftest.py for all tests
Forces the test environment and registers custom markers
"""
import os
import sys

# Add project root to Python path
sys.path.insert(0, os.path.abspath(os.path.dirname(__file__)))

os.environ["ENVIRONMENT"] = "test"
os.environ.setdefault("LOG_FORMAT", "text")


def pytest_configure(config):
    """
    Configure pytest with custom markers.

    This registers domain markers dynamically.
    """
    markers = {
        "unit": "Fast isolated unit tests",
        "critical": "Tests that must pass for a release",
        "d0_gateway": "Backend service client tests",
        "d1_reports": "Report builder and execution tests",
        "d2_charts": "Chart transform tests",
        "d3_dashboards": "Dashboard layout and rendering tests",
    }

    for marker_name, description in markers.items():
        config.addinivalue_line("markers", f"{marker_name}: {description}")
