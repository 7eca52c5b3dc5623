# tem_client/tem_api/gateway.py
#
#
# Imports
import asyncio
from typing import Any, Optional, Sequence, Union
#
# 3rd-party Libraries
from loguru import logger
#
# Local Imports
from .client import RemoteBridge
from .exceptions import RemoteTimeoutError, UnavailableError
from .schemas import RemoteOperation
#
#######################################################################################################################
#
# Functions:

DEFAULT_TIMEOUT_SECONDS = 60.0


class RemoteCallGateway:
    """
    Wraps the host bridge with a hard per-call deadline.

    Each invoke issues exactly one bridge call. Success and timeout are
    mutually exclusive: whichever happens first decides the outcome and
    asyncio.wait_for disposes of the loser.
    """

    def __init__(self, bridge: Optional[RemoteBridge] = None, default_timeout: float = DEFAULT_TIMEOUT_SECONDS):
        self.bridge = bridge
        self.default_timeout = default_timeout

    @property
    def available(self) -> bool:
        return self.bridge is not None

    async def invoke(self, operation: Union[RemoteOperation, str], args: Sequence[Any] = (),
                     timeout: Optional[float] = None) -> Any:
        name = operation.value if isinstance(operation, RemoteOperation) else str(operation)
        if self.bridge is None:
            # No timer is started when there is nothing to call
            raise UnavailableError(f"Remote bridge is not available; cannot call '{name}'")

        deadline = self.default_timeout if timeout is None else timeout
        logger.debug(f"Invoking '{name}' with {len(args)} arg(s), timeout={deadline:g}s")
        try:
            return await asyncio.wait_for(self.bridge.call(name, list(args)), timeout=deadline)
        except asyncio.TimeoutError:
            raise RemoteTimeoutError(name, deadline) from None

    async def close(self) -> None:
        if self.bridge is not None:
            await self.bridge.close()

#
# End of tem_client/tem_api/gateway.py
########################################################################################################################
