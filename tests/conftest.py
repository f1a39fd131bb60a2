from unittest.mock import MagicMock, patch

import pytest

from ga_reporting.analytics import Analytics
from ga_reporting.config import AnalyticsConfig


@pytest.fixture
def analytics_config():
    return AnalyticsConfig(service_account_file="/tmp/service-account.json")


@pytest.fixture
def service():
    return MagicMock()


@pytest.fixture
def analytics(service):
    with patch("ga_reporting.analytics.build", return_value=service):
        yield Analytics(credentials=MagicMock())


@pytest.fixture
def ga_get(service):
    """The data().ga().get method of the mocked service."""
    return service.data.return_value.ga.return_value.get
