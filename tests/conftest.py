"""
Shared fixtures for the test suite.
"""

from __future__ import annotations

from unittest.mock import MagicMock

import pytest
from kubernetes import client


# ---------------------------------------------------------------------------
# Model factories
# ---------------------------------------------------------------------------

def make_pod(name, namespace="default", ip=None, node_name=None):
    return client.V1Pod(
        metadata=client.V1ObjectMeta(name=name, namespace=namespace),
        spec=client.V1PodSpec(containers=[], node_name=node_name),
        status=client.V1PodStatus(pod_ip=ip),
    )


def make_node(name, *addresses):
    """addresses are (type, address) pairs, in node order."""
    return client.V1Node(
        metadata=client.V1ObjectMeta(name=name),
        status=client.V1NodeStatus(addresses=[
            client.V1NodeAddress(type=t, address=a) for t, a in addresses
        ]),
    )


NODES = [
    make_node("node-1", ("Hostname", "node-1"), ("InternalIP", "10.0.0.1")),
    make_node("node-2", ("ExternalIP", "34.1.2.3"), ("InternalIP", "10.0.0.2")),
]

PODS = [
    make_pod("nginx-7c9f", "default", "172.17.0.4", "node-1"),
    make_pod("redis-0", "cache", "172.17.0.5", "node-2"),
    make_pod("NGINX-ingress", "ingress", "172.17.0.6", "node-2"),
    make_pod("nginx-pending", "dev"),
]


# ---------------------------------------------------------------------------
# API mock
# ---------------------------------------------------------------------------

@pytest.fixture
def v1():
    """A CoreV1Api stand-in serving PODS and NODES."""
    api = MagicMock()
    api.list_pod_for_all_namespaces.return_value = client.V1PodList(items=PODS)
    api.list_namespaced_pod.return_value = client.V1PodList(
        items=[p for p in PODS if p.metadata.namespace == "default"])
    api.list_node.return_value = client.V1NodeList(items=NODES)
    return api
