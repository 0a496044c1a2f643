"""NovaMarket — client for an on-chain NFT marketplace."""

__version__ = "0.1.0"
