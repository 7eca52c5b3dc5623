# test_remote_gateway.py
#
# Imports
import asyncio
from unittest.mock import AsyncMock, patch
import pytest
#
# Local Imports
from tem_client.tem_api.exceptions import APIConnectionError, RemoteTimeoutError, UnavailableError
from tem_client.tem_api.gateway import RemoteCallGateway
from tem_client.tem_api.schemas import RemoteOperation
#
########################################################################################################################
#
# Tests:

pytestmark = pytest.mark.asyncio


async def test_invoke_without_bridge_fails_before_any_timer():
    gateway = RemoteCallGateway(bridge=None)
    with patch("tem_client.tem_api.gateway.asyncio.wait_for") as mock_wait_for:
        with pytest.raises(UnavailableError) as exc_info:
            await gateway.invoke(RemoteOperation.BOOTSTRAP)
    mock_wait_for.assert_not_called()
    assert "getAppBootstrapData" in str(exc_info.value)
    assert gateway.available is False


async def test_invoke_returns_remote_value_and_calls_once(fake_bridge, gateway):
    fake_bridge.script(RemoteOperation.FETCH_BATCH, {"ok": True, "records": []})

    result = await gateway.invoke(RemoteOperation.FETCH_BATCH, ("T", 0, 500))

    assert result == {"ok": True, "records": []}
    assert fake_bridge.calls == [("fetchShortcutsBatch", ["T", 0, 500])]


async def test_invoke_accepts_plain_operation_names(fake_bridge, gateway):
    fake_bridge.script("warmShortcutsCache", {"ok": True, "cached": 12})
    assert await gateway.invoke("warmShortcutsCache") == {"ok": True, "cached": 12}


async def test_invoke_times_out_with_remote_timeout_error(fake_bridge):
    async def never_answers(args):
        await asyncio.sleep(10)

    fake_bridge.script(RemoteOperation.BOOTSTRAP, never_answers)
    gateway = RemoteCallGateway(fake_bridge, default_timeout=0.05)

    with pytest.raises(RemoteTimeoutError) as exc_info:
        await gateway.invoke(RemoteOperation.BOOTSTRAP)

    assert exc_info.value.operation == "getAppBootstrapData"
    assert exc_info.value.timeout == 0.05
    assert "timeout" in str(exc_info.value).lower()
    assert len(fake_bridge.calls) == 1


async def test_per_call_timeout_overrides_default(fake_bridge):
    async def slow(args):
        await asyncio.sleep(0.2)
        return {"ok": True}

    fake_bridge.set_default(RemoteOperation.BOOTSTRAP, slow)
    gateway = RemoteCallGateway(fake_bridge, default_timeout=0.01)

    assert await gateway.invoke(RemoteOperation.BOOTSTRAP, timeout=5.0) == {"ok": True}


async def test_underlying_error_propagates_unchanged(fake_bridge, gateway):
    error = APIConnectionError("Failed to fetch")
    fake_bridge.script(RemoteOperation.DELETE, error)

    with pytest.raises(APIConnectionError) as exc_info:
        await gateway.invoke(RemoteOperation.DELETE, [";k1"])
    assert exc_info.value is error


async def test_close_closes_bridge():
    bridge = AsyncMock()
    gateway = RemoteCallGateway(bridge)
    await gateway.close()
    bridge.close.assert_awaited_once()

#
# End of test_remote_gateway.py
########################################################################################################################
