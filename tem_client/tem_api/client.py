# tem_client/tem_api/client.py
#
#
# Imports
import json
from typing import Optional, Dict, Any, Sequence
#
# 3rd-party Libraries
import httpx
from loguru import logger
#
# Local Imports
from .exceptions import APIConnectionError, APIResponseError, RemoteScriptError, RemoteTimeoutError
#
########################################################################################################################
#
# Functions:

class RemoteBridge:
    """
    The single async call primitive the host environment exposes:
    fire a named backend function with positional arguments and get back
    exactly one result or one exception.
    """

    async def call(self, operation: str, args: Sequence[Any]) -> Any:
        raise NotImplementedError

    async def close(self) -> None:
        return None


class HttpScriptBridge(RemoteBridge):
    """
    Bridge to a script backend that speaks the Apps Script Execution API
    `scripts.run` shape:

        POST {endpoint}  {"function": name, "parameters": [...], "devMode": false}
        -> {"done": true, "response": {"result": ...}}
        -> {"done": true, "error": {"details": [{"errorMessage": ..., "errorType": ...}]}}
    """

    def __init__(self, endpoint: str, token: Optional[str] = None, timeout: float = 60.0,
                 dev_mode: bool = False, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.endpoint = endpoint
        self.token = token
        self.timeout = timeout
        self.dev_mode = dev_mode
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    async def _get_client(self) -> httpx.AsyncClient:
        if self._client is None or self._client.is_closed:
            headers = {"Content-Type": "application/json"}
            if self.token:
                headers["Authorization"] = f"Bearer {self.token}"
            self._client = httpx.AsyncClient(
                headers=headers,
                timeout=self.timeout,
                follow_redirects=True,
                transport=self._transport,
            )
        return self._client

    async def close(self) -> None:
        if self._client and not self._client.is_closed:
            await self._client.aclose()
        self._client = None

    async def call(self, operation: str, args: Sequence[Any]) -> Any:
        body = {"function": operation, "parameters": list(args), "devMode": self.dev_mode}
        data = await self._request(operation, body)
        return self._unwrap(operation, data)

    async def _request(self, operation: str, body: Dict[str, Any]) -> Dict[str, Any]:
        client = await self._get_client()
        try:
            response = await client.post(self.endpoint, json=body)
            response.raise_for_status()  # Raises HTTPStatusError for 4xx/5xx
            return response.json()
        except httpx.HTTPStatusError as e:
            error_detail = str(e)
            response_data = None
            try:
                response_data = e.response.json()
                if isinstance(response_data, dict) and isinstance(response_data.get("error"), dict):
                    error_detail = response_data["error"].get("message", error_detail)
            except (json.JSONDecodeError, ValueError):
                pass  # Body is not JSON; keep the status line
            raise APIResponseError(e.response.status_code, error_detail, response_data=response_data)
        except httpx.TimeoutException as e:
            logger.warning(f"Transport timeout calling '{operation}': {e}")
            raise RemoteTimeoutError(operation, self.timeout) from e
        except httpx.RequestError as e:  # ConnectError, ReadError, ...
            raise APIConnectionError(f"Network error calling '{operation}' at {self.endpoint}: {e}") from e
        except json.JSONDecodeError:
            raise APIResponseError(response.status_code, "Failed to decode JSON response",
                                   response_data={"raw_text": response.text})

    @staticmethod
    def _unwrap(operation: str, data: Dict[str, Any]) -> Any:
        if not isinstance(data, dict):
            raise APIResponseError(200, f"Unexpected response body for '{operation}'",
                                   response_data={"raw": data})
        error = data.get("error")
        if error and not isinstance(error, dict):
            raise RemoteScriptError(operation, str(error))
        if error:
            details = error.get("details") or [{}]
            first = details[0] if isinstance(details[0], dict) else {}
            message = first.get("errorMessage") or error.get("message") or "Unknown script error"
            raise RemoteScriptError(operation, message, error_type=first.get("errorType"))
        return (data.get("response") or {}).get("result")

#
# End of tem_client/tem_api/client.py
########################################################################################################################
