"""HTTP client for the node's Tendermint RPC endpoint"""

import logging
from typing import Dict, Optional

import requests

logger = logging.getLogger(__name__)


class NodeRpcClient:
    """Client for communicating with a running provenanced node"""

    def __init__(self, base_url: str, timeout: float = 5):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = requests.Session()

    def status(self) -> Dict:
        """Result body of the /status endpoint"""
        response = self.session.get(f"{self.base_url}/status", timeout=self.timeout)

        if response.status_code != 200:
            raise Exception(f"Failed to get node status: {response.status_code} - {response.text}")

        data = response.json()
        # older nodes wrap the body in a JSON-RPC envelope
        return data.get("result", data)

    def latest_block_height(self) -> Optional[int]:
        try:
            status = self.status()
        except Exception as e:
            logger.warning(f"  ⚠ Could not query node status at {self.base_url}: {e}")
            return None

        height = status.get("sync_info", {}).get("latest_block_height")
        if height is None:
            return None
        try:
            return int(height)
        except (TypeError, ValueError):
            return None

    def network(self) -> Optional[str]:
        try:
            return self.status().get("node_info", {}).get("network")
        except Exception as e:
            logger.warning(f"  ⚠ Could not query node status at {self.base_url}: {e}")
            return None
