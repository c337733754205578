"""
Minimal client for the ENS subgraph, used to recover label text from labelhashes.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

import requests

logger = logging.getLogger(__name__)

LABELS_QUERY = """
query Labels($labelhashes: [String!]) {
  domains(where: { labelhash_in: $labelhashes }) {
    labelName
    labelhash
  }
}
"""


class SubgraphClient:
    """Client for querying an ENS subgraph over GraphQL."""

    def __init__(self, subgraph_url: str, timeout: int = 10):
        self.subgraph_url = subgraph_url
        self.timeout = timeout

    def query(self, query: str, variables: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        """Execute a GraphQL query and return its `data` payload."""
        response = requests.post(
            self.subgraph_url,
            json={"query": query, "variables": variables or {}},
            headers={"Content-Type": "application/json"},
            timeout=self.timeout,
        )
        response.raise_for_status()
        result = response.json()
        if "errors" in result:
            raise ValueError(f"GraphQL errors: {result['errors']}")
        return result.get("data", {})

    def get_labels(self, labelhashes: List[str]) -> Dict[str, str]:
        """Map 0x-hex labelhashes to their known label text."""
        if not labelhashes:
            return {}
        data = self.query(LABELS_QUERY, {"labelhashes": [h.lower() for h in labelhashes]})
        labels = {}
        for domain in data.get("domains", []):
            if domain.get("labelName") and domain.get("labelhash"):
                labels[domain["labelhash"].lower()] = domain["labelName"]
        logger.debug(f"Subgraph recovered {len(labels)} of {len(labelhashes)} labels")
        return labels
