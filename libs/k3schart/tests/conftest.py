"""Shared fixtures for k3schart tests."""

import pytest

from k3schart.schema import load_chart_metadata, load_default_values
from k3schart.types import ReleaseConfig
from k3schart.values import deep_merge


@pytest.fixture
def chart():
    """Packaged chart metadata."""
    return load_chart_metadata()


@pytest.fixture
def make_release():
    """Build a ReleaseConfig from chart defaults plus overrides."""
    def _make(overrides=None, name="web", namespace="prod"):
        values = deep_merge(load_default_values(), overrides or {})
        return ReleaseConfig.from_dict(name, values, namespace=namespace)
    return _make


@pytest.fixture
def full_overrides():
    """Values that enable every optional resource."""
    return {
        "replicaCount": 3,
        "ingress": {
            "enabled": True,
            "className": "nginx",
            "annotations": {"cert-manager.io/cluster-issuer": "letsencrypt"},
            "hosts": [
                {"host": "web.example.com", "paths": [{"path": "/", "pathType": "Prefix"}]},
            ],
            "tls": [{"secretName": "web-tls", "hosts": ["web.example.com"]}],
        },
        "autoscaling": {
            "enabled": True,
            "minReplicas": 2,
            "maxReplicas": 20,
        },
        "podDisruptionBudget": {"enabled": True},
        "configMap": {"enabled": True, "data": {"LOG_LEVEL": "info"}},
        "secret": {"enabled": True, "data": {"API_KEY": "s3cr3t"}},
        "networkPolicy": {
            "enabled": True,
            "ingress": [
                {
                    "peers": [
                        {"namespaceSelector": {"matchLabels": {"kubernetes.io/metadata.name": "ingress-nginx"}}},
                    ],
                },
            ],
            "egress": [
                {"peers": [{"ipBlock": {"cidr": "10.0.0.0/8"}}], "ports": [{"port": 5432}]},
            ],
        },
        "rbac": {
            "create": True,
            "rules": [
                {"apiGroups": [""], "resources": ["configmaps"], "verbs": ["get", "list"]},
            ],
        },
        "serviceMonitor": {"enabled": True, "labels": {"release": "prometheus"}},
    }
