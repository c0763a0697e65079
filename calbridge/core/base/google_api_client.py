"""
Base Google API Client
Builds an authorized discovery service and checks it carries the scopes a transport needs
"""
from abc import ABC, abstractmethod
from typing import Any, List

from google.oauth2.credentials import Credentials

from ...utils.config import BridgeConfig
from ...utils.logger import setup_logger

logger = setup_logger(__name__)


class BaseGoogleAPIClient(ABC):
    """
    Abstract base for transports backed by a Google API

    The service is built once in the constructor. A build failure leaves
    `service` as None, which is_available() reports, so the caller decides
    whether a missing service is fatal.

    Subclasses implement _build_service(), _get_required_scopes() and
    _get_service_name().
    """

    def __init__(self, config: BridgeConfig, credentials: Credentials):
        self.config = config
        self.credentials = credentials
        self.service = None
        self._initialize_service()

    def _initialize_service(self) -> None:
        name = self._get_service_name()
        if not self.credentials:
            logger.warning(f"[{name.upper()}] No credentials supplied, service not built")
            return

        try:
            self.service = self._build_service()
        except Exception as e:
            logger.error(f"[{name.upper()}] Failed to build {name} service: {e}")
            self.service = None
            return

        logger.debug(
            f"[{name.upper()}] {name} service ready "
            f"(scopes: {getattr(self.credentials, 'scopes', None)})"
        )

    @abstractmethod
    def _build_service(self) -> Any:
        """Return the discovery service, e.g. build('gmail', 'v1', ...)"""

    @abstractmethod
    def _get_required_scopes(self) -> List[str]:
        """OAuth scopes every transport operation depends on"""

    @abstractmethod
    def _get_service_name(self) -> str:
        """Human readable name used in log messages"""

    def missing_scopes(self) -> List[str]:
        """Required scopes the credentials were not granted"""
        granted = getattr(self.credentials, "scopes", None)
        if not granted:
            # Scopes unknown until the first refresh; assume the token is adequate
            return []
        return [scope for scope in self._get_required_scopes() if scope not in granted]

    def is_available(self) -> bool:
        """
        True when the service was built and the token grants every required scope

        A token minted for fewer scopes must be deleted and re-consented; the
        error log names the token file to remove.
        """
        if self.service is None:
            return False

        missing = self.missing_scopes()
        if missing:
            logger.error(
                f"[{self._get_service_name().upper()}] Token lacks scopes {missing}; "
                f"delete {self.config.token_path} and authorize again"
            )
            return False

        return True
