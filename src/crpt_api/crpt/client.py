# ABOUTME: HTTP client for the CRPT "create document" endpoint.
# ABOUTME: Every request passes through an AdmissionGate before it is sent.

import logging
import threading

import requests
from requests.adapters import HTTPAdapter

from ..concurrency import AdmissionGate, GateSnapshot, RateLimit, TimeUnit
from ..documents import Document, to_json
from ..errors import ApiRequestFailed, IOFailure

logger = logging.getLogger(__name__)

DEFAULT_ENDPOINT = "https://ismp.crpt.ru/api/v3/lk/documents/create"

# Timeouts for the outbound request (seconds)
DEFAULT_CONNECT_TIMEOUT = 10
DEFAULT_READ_TIMEOUT = 30

# Characters of an error response body kept on ApiRequestFailed
ERROR_BODY_LIMIT = 500


class CrptApi:
    """Rate-limited client for creating CRPT documents.

    Safe to share between threads. At most ``request_limit`` requests are
    admitted per window, and at most ``request_limit`` are in flight at once.
    """

    def __init__(
        self,
        time_unit: TimeUnit,
        request_limit: int,
        *,
        window_size: int = 1,
        endpoint: str = DEFAULT_ENDPOINT,
        connect_timeout: float = DEFAULT_CONNECT_TIMEOUT,
        read_timeout: float = DEFAULT_READ_TIMEOUT,
        session: requests.Session | None = None,
    ):
        """Initialize the client.

        Args:
            time_unit: Unit of the rate window.
            request_limit: Maximum requests per window; must be positive.
            window_size: Window length in ``time_unit``.
            endpoint: URL documents are POSTed to.
            connect_timeout: Seconds to wait for a connection.
            read_timeout: Seconds to wait for the response.
            session: Session to send requests with. When omitted the client
                creates one and closes it in close().

        Raises:
            InvalidConfiguration: If the limit or window is not positive.
        """
        self.rate_limit = RateLimit.per(time_unit, request_limit, units=window_size)
        self.endpoint = endpoint
        self.timeout = (connect_timeout, read_timeout)
        self._gate = AdmissionGate(self.rate_limit)
        self._owns_session = session is None
        self._session = session if session is not None else self._build_session()

    @classmethod
    def from_config(cls, config, session: requests.Session | None = None) -> "CrptApi":
        """Create a client from a loaded Config."""
        return cls(
            config.time_unit,
            config.request_limit,
            window_size=config.window_size,
            endpoint=config.endpoint,
            connect_timeout=config.connect_timeout,
            read_timeout=config.read_timeout,
            session=session,
        )

    def create_document(
        self,
        document: Document,
        signature: str,
        cancel: threading.Event | None = None,
    ) -> requests.Response:
        """Serialize and submit a document.

        The document is serialized before admission, so a SerializationFailure
        never consumes a slot.
        """
        body = to_json(document)
        return self.submit(body, signature, cancel=cancel)

    def submit(
        self,
        payload: str,
        signature: str,
        cancel: threading.Event | None = None,
    ) -> requests.Response:
        """Send a serialized document once admission is granted.

        Args:
            payload: JSON request body.
            signature: Value of the Signature header.
            cancel: Optional event that interrupts the admission wait.

        Returns:
            The response, whose status is below 400.

        Raises:
            Interrupted: If ``cancel`` was set before admission; nothing is sent.
            IOFailure: On connection errors and timeouts.
            ApiRequestFailed: If the endpoint returns a status of 400 or above.
        """
        headers = {
            "Content-Type": "application/json",
            "Signature": signature,
        }
        with self._gate.admitted(cancel):
            logger.debug(f"POST {self.endpoint} ({len(payload)} bytes)")
            try:
                response = self._session.post(
                    self.endpoint,
                    data=payload.encode("utf-8"),
                    headers=headers,
                    timeout=self.timeout,
                )
            except requests.RequestException as e:
                raise IOFailure(f"Request to {self.endpoint} failed: {e}") from e

            if response.status_code >= 400:
                body = (response.text or "")[:ERROR_BODY_LIMIT]
                logger.debug(f"Endpoint answered {response.status_code}: {body}")
                raise ApiRequestFailed(response.status_code, body)

            return response

    @property
    def session(self) -> requests.Session:
        """Session requests are sent with."""
        return self._session

    def snapshot(self) -> GateSnapshot:
        """Current state of the client's admission gate."""
        return self._gate.snapshot()

    def close(self) -> None:
        if self._owns_session:
            self._session.close()

    def __enter__(self) -> "CrptApi":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def _build_session(self) -> requests.Session:
        # One pooled connection per possible in-flight request
        session = requests.Session()
        adapter = HTTPAdapter(pool_maxsize=self.rate_limit.max_requests)
        session.mount("https://", adapter)
        session.mount("http://", adapter)
        return session
