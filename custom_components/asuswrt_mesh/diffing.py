"""Connected client set diffing."""

from __future__ import annotations

from typing import Any, Dict, Iterable, List, NamedTuple, Sequence

from .const import ATTR_IP, ATTR_MAC, ATTR_NAME, ATTR_NICKNAME, ATTR_RSSI, ATTR_VENDOR
from .models import ConnectedClient


class ClientDiff(NamedTuple):
    """Result of comparing two snapshots of the same scope."""

    departed: List[ConnectedClient]
    arrived: List[ConnectedClient]


def diff_clients(
    old: Sequence[ConnectedClient], new: Sequence[ConnectedClient]
) -> ClientDiff:
    """Compare two snapshots by hardware address.

    Departed clients keep the order of ``old``, arrived clients the order of
    ``new``. Changes to any other attribute (IP, signal strength) are not
    transitions.
    """
    old_macs = {client.mac for client in old}
    new_macs = {client.mac for client in new}

    departed = [client for client in old if client.mac not in new_macs]
    arrived = [client for client in new if client.mac not in old_macs]

    return ClientDiff(departed, arrived)


def union_snapshots(*snapshots: Iterable[ConnectedClient]) -> List[ConnectedClient]:
    """Concatenate per-scope snapshots into one "any access point" view."""
    union: List[ConnectedClient] = []
    for snapshot in snapshots:
        union.extend(snapshot)
    return union


def client_tokens(client: ConnectedClient) -> Dict[str, Any]:
    """Return the event payload describing a client."""
    return {
        ATTR_NAME: client.name,
        ATTR_IP: client.ip,
        ATTR_MAC: client.mac,
        ATTR_NICKNAME: client.nickname,
        ATTR_VENDOR: client.vendor,
        ATTR_RSSI: client.rssi,
    }
