"""
Mutual Fund Tracking Backend — Application Factory Tests
=========================================================

What:  Tests for create_app() wiring and the startup database ping.

What we test:
    ✅ A transient ping failure is retried
    ✅ A database that stays down fails startup with the driver error
    ✅ create_app() stores its collaborators on app.state
"""

import asyncio
from unittest.mock import AsyncMock, patch

import pytest

from mftracking.main import create_app, wait_for_database
from mftracking.services.mutual_fund_meta_service import MutualFundMetaService


@pytest.fixture
def fast_retry_settings(test_settings):
    return test_settings.model_copy(
        update={"retry_max_attempts": 2, "retry_min_wait": 0, "retry_max_wait": 0}
    )


class TestStartupPing:

    @pytest.mark.asyncio
    async def test_transient_failure_retried(self, fast_retry_settings):
        app = create_app(fast_retry_settings)

        with patch("mftracking.main.ping", AsyncMock(side_effect=[OSError("refused"), None])) as ping:
            await wait_for_database(app)

        assert ping.await_count == 2
        await app.state.engine.dispose()

    @pytest.mark.asyncio
    async def test_persistent_failure_raises(self, fast_retry_settings):
        app = create_app(fast_retry_settings)

        with patch("mftracking.main.ping", AsyncMock(side_effect=OSError("refused"))) as ping:
            with pytest.raises(OSError, match="refused"):
                await wait_for_database(app)

        assert ping.await_count == 2
        await app.state.engine.dispose()

    @pytest.mark.asyncio
    async def test_real_ping_succeeds(self, test_settings):
        app = create_app(test_settings)
        await wait_for_database(app)
        await app.state.engine.dispose()


class TestCreateApp:

    def test_state(self, test_settings):
        app = create_app(test_settings)

        assert app.state.settings is test_settings
        assert isinstance(app.state.service, MutualFundMetaService)
        assert isinstance(app.state.write_lock, asyncio.Lock)
