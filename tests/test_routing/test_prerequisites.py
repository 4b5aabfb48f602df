"""
Unit tests for prerequisite checking.
"""

import pytest

from navcaddy.agents.prerequisites import CallablePrerequisiteChecker
from navcaddy.models.routing import Prerequisite


@pytest.mark.asyncio
async def test_sync_and_async_callbacks():
    async def recovery_available():
        return True

    checker = CallablePrerequisiteChecker({
        Prerequisite.RECOVERY_DATA: recovery_available,
        Prerequisite.BAG_CONFIGURED: lambda: False,
    })

    assert await checker.check(Prerequisite.RECOVERY_DATA)
    assert not await checker.check(Prerequisite.BAG_CONFIGURED)


@pytest.mark.asyncio
async def test_unregistered_prerequisite_is_missing():
    checker = CallablePrerequisiteChecker()
    assert not await checker.check(Prerequisite.ROUND_ACTIVE)

    checker.register(Prerequisite.ROUND_ACTIVE, lambda: True)
    assert await checker.check(Prerequisite.ROUND_ACTIVE)


@pytest.mark.asyncio
async def test_check_all_keeps_order():
    checker = CallablePrerequisiteChecker({
        Prerequisite.RECOVERY_DATA: lambda: False,
        Prerequisite.ROUND_ACTIVE: lambda: True,
        Prerequisite.BAG_CONFIGURED: lambda: False,
    })

    missing = await checker.check_all([
        Prerequisite.BAG_CONFIGURED,
        Prerequisite.ROUND_ACTIVE,
        Prerequisite.RECOVERY_DATA,
    ])

    assert missing == [Prerequisite.BAG_CONFIGURED, Prerequisite.RECOVERY_DATA]


@pytest.mark.asyncio
async def test_failing_check_counts_as_missing():
    def broken():
        raise ConnectionError("profile service down")

    checker = CallablePrerequisiteChecker({
        Prerequisite.BAG_CONFIGURED: broken,
        Prerequisite.ROUND_ACTIVE: lambda: True,
    })

    missing = await checker.check_all([Prerequisite.BAG_CONFIGURED, Prerequisite.ROUND_ACTIVE])

    assert missing == [Prerequisite.BAG_CONFIGURED]


@pytest.mark.asyncio
async def test_check_all_empty():
    assert await CallablePrerequisiteChecker().check_all([]) == []
