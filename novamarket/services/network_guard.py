"""Network guard — moves the wallet onto the marketplace network."""
from __future__ import annotations

import enum
import logging

from ..config import NetworkConfig
from ..errors import NetworkSwitchFailed, WalletRequestError
from ..interfaces.wallet import WalletProvider

logger = logging.getLogger(__name__)


class NetworkState(str, enum.Enum):
    UNCHECKED = "Unchecked"
    CHECKING = "Checking"
    SWITCHING = "Switching"
    REGISTERING = "Registering"
    MATCHED = "Matched"
    FAILED = "Failed"


def same_chain(a: str | int, b: str | int) -> bool:
    """Compare chain identifiers numerically ('0x4EBF' == '0x4ebf' == 20159)."""
    try:
        return _as_int(a) == _as_int(b)
    except (TypeError, ValueError):
        return False


def _as_int(chain_id: str | int) -> int:
    if isinstance(chain_id, int):
        return chain_id
    return int(chain_id, 16)


class NetworkGuard:
    """Check the wallet network and switch or register it when it differs.

    One :meth:`ensure` call walks ``Unchecked → Checking → Matched`` or
    ``Checking → Switching → (Registering →) Matched | Failed``. The only
    retry is the switch that follows a successful registration.
    """

    def __init__(self, wallet: WalletProvider, config: NetworkConfig) -> None:
        self._wallet = wallet
        self._config = config
        self.state = NetworkState.UNCHECKED

    @property
    def required_chain_id(self) -> str:
        return self._config.chain_id

    def _registration_params(self) -> dict:
        currency = self._config.native_currency
        return {
            "chainId": self._config.chain_id,
            "chainName": self._config.chain_name,
            "rpcUrls": list(self._config.rpc_urls),
            "nativeCurrency": {
                "name": currency.name,
                "symbol": currency.symbol,
                "decimals": currency.decimals,
            },
        }

    def _fail(self, message: str) -> NetworkSwitchFailed:
        self.state = NetworkState.FAILED
        logger.error("Network switch failed: %s", message)
        return NetworkSwitchFailed(message)

    async def _switch(self) -> None:
        await self._wallet.request(
            "wallet_switchEthereumChain", [{"chainId": self._config.chain_id}]
        )

    async def ensure(self) -> str:
        """Make sure the wallet is on the required network.

        Returns:
            The required chain id.

        Raises:
            NetworkSwitchFailed: the wallet could not be moved.
        """
        self.state = NetworkState.CHECKING
        try:
            current = await self._wallet.request("eth_chainId")
        except WalletRequestError as e:
            raise self._fail(f"could not read wallet network: {e}") from e

        if same_chain(current, self._config.chain_id):
            self.state = NetworkState.MATCHED
            return self._config.chain_id

        logger.info(
            "Wallet on network %s, switching to %s", current, self._config.chain_id
        )
        self.state = NetworkState.SWITCHING
        try:
            await self._switch()
        except WalletRequestError as e:
            if not e.unrecognized_chain:
                raise self._fail(f"switch to {self._config.chain_id} refused: {e}") from e
            await self._register_and_switch()

        self.state = NetworkState.MATCHED
        logger.info("Wallet now on network %s", self._config.chain_id)
        return self._config.chain_id

    async def _register_and_switch(self) -> None:
        self.state = NetworkState.REGISTERING
        logger.info(
            "Network %s unknown to wallet, registering %s",
            self._config.chain_id,
            self._config.chain_name,
        )
        try:
            await self._wallet.request(
                "wallet_addEthereumChain", [self._registration_params()]
            )
            await self._switch()
        except WalletRequestError as e:
            raise self._fail(
                f"registering {self._config.chain_name} ({self._config.chain_id}) failed: {e}"
            ) from e
