"""Tests for k3schart Kubernetes manifest generators."""

import base64

import pytest

from k3schart.generators import (
    CONFIG_CHECKSUM_ANNOTATION,
    SECRET_CHECKSUM_ANNOTATION,
    chart_name,
    common_labels,
    compute_checksums,
    fullname,
    generate_all_manifests,
    generate_configmap,
    generate_deployment,
    generate_hpa,
    generate_ingress,
    generate_network_policy,
    generate_pdb,
    generate_role,
    generate_role_binding,
    generate_secret,
    generate_service,
    generate_service_account,
    generate_service_monitor,
    selector_labels,
    service_account_name,
)


def _kinds(manifests):
    return [m["kind"] for m in manifests]


def _find(manifests, kind):
    found = [m for m in manifests if m["kind"] == kind]
    assert len(found) == 1, f"expected exactly one {kind}, got {len(found)}"
    return found[0]


class TestNaming:
    def test_fullname_appends_chart_name(self, chart, make_release):
        release = make_release(name="web")
        assert fullname(chart, release) == "web-web-service"

    def test_fullname_uses_release_containing_chart_name(self, chart, make_release):
        release = make_release(name="prod-web-service")
        assert fullname(chart, release) == "prod-web-service"

    def test_fullname_override(self, chart, make_release):
        release = make_release({"fullnameOverride": "frontend"})
        assert fullname(chart, release) == "frontend"

    def test_name_override(self, chart, make_release):
        release = make_release({"nameOverride": "api"})
        assert chart_name(chart, release) == "api"
        assert fullname(chart, release) == "web-api"

    def test_fullname_truncated_without_trailing_dash(self, chart, make_release):
        release = make_release(name="r" * 62)
        name = fullname(chart, release)
        assert len(name) <= 63
        assert name == "r" * 62

    def test_common_labels_include_selector_labels(self, chart, make_release):
        release = make_release()
        labels = common_labels(chart, release)

        for key, value in selector_labels(chart, release).items():
            assert labels[key] == value
        assert labels["helm.sh/chart"] == "web-service-0.1.0"
        assert labels["app.kubernetes.io/version"] == "1.0.0"
        assert labels["app.kubernetes.io/managed-by"] == "k3schart"

    def test_service_account_name(self, chart, make_release):
        assert service_account_name(chart, make_release()) == "web-web-service"
        assert service_account_name(
            chart, make_release({"serviceAccount": {"name": "custom"}})
        ) == "custom"
        assert service_account_name(
            chart, make_release({"serviceAccount": {"create": False}})
        ) == "default"


class TestGenerateDeployment:
    def test_minimal_deployment(self, chart, make_release):
        deployment = generate_deployment(chart, make_release())

        assert deployment["apiVersion"] == "apps/v1"
        assert deployment["kind"] == "Deployment"
        assert deployment["metadata"]["name"] == "web-web-service"
        assert deployment["metadata"]["namespace"] == "prod"
        assert deployment["spec"]["replicas"] == 1

        containers = deployment["spec"]["template"]["spec"]["containers"]
        assert len(containers) == 1
        assert containers[0]["name"] == "web-service"
        assert containers[0]["image"] == "nginx:1.0.0"
        assert containers[0]["ports"] == [
            {"name": "http", "containerPort": 8080, "protocol": "TCP"},
        ]

    def test_selector_matches_template_labels(self, chart, make_release):
        release = make_release({"podLabels": {"team": "web"}})
        deployment = generate_deployment(chart, release)

        selector = deployment["spec"]["selector"]["matchLabels"]
        template_labels = deployment["spec"]["template"]["metadata"]["labels"]
        assert selector == selector_labels(chart, release)
        assert all(template_labels[k] == v for k, v in selector.items())
        assert template_labels["team"] == "web"

    def test_pod_labels_cannot_override_selector(self, chart, make_release):
        release = make_release({"podLabels": {"app.kubernetes.io/instance": "other"}})
        deployment = generate_deployment(chart, release)

        labels = deployment["spec"]["template"]["metadata"]["labels"]
        assert labels["app.kubernetes.io/instance"] == "web"

    def test_image_tag_and_digest(self, chart, make_release):
        tagged = generate_deployment(chart, make_release({"image": {"tag": "2.3.4"}}))
        container = tagged["spec"]["template"]["spec"]["containers"][0]
        assert container["image"] == "nginx:2.3.4"

        pinned = generate_deployment(
            chart,
            make_release({"image": {"tag": "2.3.4", "digest": "sha256:abc123"}}),
        )
        container = pinned["spec"]["template"]["spec"]["containers"][0]
        assert container["image"] == "nginx@sha256:abc123"

    def test_deployment_with_probes(self, chart, make_release):
        release = make_release({
            "probes": {
                "startup": {"type": "tcp", "failureThreshold": 30},
                "liveness": {"type": "exec", "command": ["cat", "/tmp/healthy"]},
            },
        })
        container = generate_deployment(chart, release)["spec"]["template"]["spec"]["containers"][0]

        assert container["startupProbe"]["tcpSocket"]["port"] == "http"
        assert container["startupProbe"]["failureThreshold"] == 30
        assert container["readinessProbe"]["httpGet"] == {"path": "/healthz", "port": "http"}
        assert container["livenessProbe"]["exec"]["command"] == ["cat", "/tmp/healthy"]

    def test_probe_removed_with_null(self, chart, make_release):
        release = make_release({"probes": {"liveness": None}})
        container = generate_deployment(chart, release)["spec"]["template"]["spec"]["containers"][0]

        assert "livenessProbe" not in container
        assert "readinessProbe" in container

    def test_deployment_with_resources(self, chart, make_release):
        release = make_release({
            "resources": {"requests": {"cpu": "250m"}, "limits": {"cpu": "1"}},
        })
        container = generate_deployment(chart, release)["spec"]["template"]["spec"]["containers"][0]

        assert container["resources"]["requests"] == {"cpu": "250m", "memory": "128Mi"}
        assert container["resources"]["limits"] == {"memory": "256Mi", "cpu": "1"}

    def test_security_contexts(self, chart, make_release):
        deployment = generate_deployment(chart, make_release())
        pod_spec = deployment["spec"]["template"]["spec"]
        container = pod_spec["containers"][0]

        assert pod_spec["securityContext"] == {
            "runAsNonRoot": True,
            "runAsUser": 10001,
            "runAsGroup": 10001,
            "fsGroup": 10001,
            "seccompProfile": {"type": "RuntimeDefault"},
        }
        assert container["securityContext"]["readOnlyRootFilesystem"] is True
        assert container["securityContext"]["capabilities"] == {"drop": ["ALL"]}

        # Read-only root filesystem gets a writable /tmp
        assert container["volumeMounts"] == [{"name": "tmp", "mountPath": "/tmp"}]
        assert pod_spec["volumes"] == [{"name": "tmp", "emptyDir": {}}]

    def test_env_and_env_from(self, chart, make_release):
        release = make_release({
            "env": {"LOG_LEVEL": "debug", "WORKERS": 4},
            "configMap": {"enabled": True, "data": {"A": "1"}},
            "secret": {"enabled": True, "data": {"B": "2"}},
        })
        container = generate_deployment(chart, release)["spec"]["template"]["spec"]["containers"][0]

        assert container["env"] == [
            {"name": "LOG_LEVEL", "value": "debug"},
            {"name": "WORKERS", "value": "4"},
        ]
        assert container["envFrom"] == [
            {"configMapRef": {"name": "web-web-service"}},
            {"secretRef": {"name": "web-web-service"}},
        ]

    def test_checksum_annotations(self, chart, make_release):
        release = make_release({"podAnnotations": {"team": "web"}})
        deployment = generate_deployment(
            chart,
            release,
            checksums={CONFIG_CHECKSUM_ANNOTATION: "abc"},
        )

        annotations = deployment["spec"]["template"]["metadata"]["annotations"]
        assert annotations == {CONFIG_CHECKSUM_ANNOTATION: "abc", "team": "web"}

    def test_scheduling_fields(self, chart, make_release):
        release = make_release({
            "nodeSelector": {"kubernetes.io/os": "linux"},
            "tolerations": [{"key": "dedicated", "operator": "Exists"}],
            "imagePullSecrets": [{"name": "registry"}],
        })
        pod_spec = generate_deployment(chart, release)["spec"]["template"]["spec"]

        assert pod_spec["nodeSelector"] == {"kubernetes.io/os": "linux"}
        assert pod_spec["tolerations"] == [{"key": "dedicated", "operator": "Exists"}]
        assert pod_spec["imagePullSecrets"] == [{"name": "registry"}]
        assert "affinity" not in pod_spec

    def test_rolling_update_strategy(self, chart, make_release):
        deployment = generate_deployment(chart, make_release())

        assert deployment["spec"]["strategy"] == {
            "type": "RollingUpdate",
            "rollingUpdate": {"maxSurge": "25%", "maxUnavailable": 0},
        }

    def test_recreate_strategy_drops_rolling_update(self, chart, make_release):
        release = make_release({"strategy": {"type": "Recreate"}})
        deployment = generate_deployment(chart, release)

        assert deployment["spec"]["strategy"] == {"type": "Recreate"}
        # values are left untouched
        assert "rollingUpdate" in release.strategy

    def test_replicas_kept_when_autoscaling(self, chart, make_release):
        release = make_release({"replicaCount": 4, "autoscaling": {"enabled": True}})
        assert generate_deployment(chart, release)["spec"]["replicas"] == 4


class TestGenerateService:
    def test_service_creation(self, chart, make_release):
        release = make_release()
        service = generate_service(chart, release)

        assert service["apiVersion"] == "v1"
        assert service["kind"] == "Service"
        assert service["metadata"]["name"] == "web-web-service"
        assert service["spec"]["type"] == "ClusterIP"
        assert service["spec"]["selector"] == selector_labels(chart, release)
        assert service["spec"]["ports"] == [
            {"name": "http", "port": 80, "targetPort": "http", "protocol": "TCP"},
        ]

    def test_node_port_only_for_node_port_services(self, chart, make_release):
        cluster_ip = generate_service(chart, make_release({"service": {"nodePort": 30080}}))
        assert "nodePort" not in cluster_ip["spec"]["ports"][0]

        node_port = generate_service(
            chart,
            make_release({"service": {"type": "NodePort", "nodePort": 30080}}),
        )
        assert node_port["spec"]["type"] == "NodePort"
        assert node_port["spec"]["ports"][0]["nodePort"] == 30080


class TestGenerateHPA:
    def test_hpa_disabled(self, chart, make_release):
        assert generate_hpa(chart, make_release()) is None

    def test_hpa_creation(self, chart, make_release):
        release = make_release({
            "autoscaling": {
                "enabled": True,
                "minReplicas": 2,
                "maxReplicas": 10,
                "targetCPUUtilizationPercentage": 70,
                "targetMemoryUtilizationPercentage": 85,
            },
        })
        hpa = generate_hpa(chart, release)

        assert hpa["apiVersion"] == "autoscaling/v2"
        assert hpa["kind"] == "HorizontalPodAutoscaler"
        assert hpa["spec"]["scaleTargetRef"] == {
            "apiVersion": "apps/v1",
            "kind": "Deployment",
            "name": "web-web-service",
        }
        assert hpa["spec"]["minReplicas"] == 2
        assert hpa["spec"]["maxReplicas"] == 10

        targets = {
            m["resource"]["name"]: m["resource"]["target"]["averageUtilization"]
            for m in hpa["spec"]["metrics"]
        }
        assert targets == {"cpu": 70, "memory": 85}
        assert "behavior" not in hpa["spec"]

    def test_hpa_custom_metrics(self, chart, make_release):
        release = make_release({
            "autoscaling": {
                "enabled": True,
                "targetCPUUtilizationPercentage": None,
                "metrics": [
                    {
                        "type": "Pods",
                        "name": "http_requests_per_second",
                        "target": {"type": "AverageValue", "value": "100"},
                    },
                    {
                        "type": "External",
                        "name": "queue_depth",
                        "selector": {"matchLabels": {"queue": "jobs"}},
                        "target": {"type": "Value", "value": 30},
                    },
                ],
                "behavior": {"scaleDown": {"stabilizationWindowSeconds": 300}},
            },
        })
        hpa = generate_hpa(chart, release)
        metrics = hpa["spec"]["metrics"]

        assert [m["type"] for m in metrics] == ["Pods", "External"]
        assert metrics[0]["pods"] == {
            "metric": {"name": "http_requests_per_second"},
            "target": {"type": "AverageValue", "averageValue": "100"},
        }
        assert metrics[1]["external"]["metric"]["selector"] == {"matchLabels": {"queue": "jobs"}}
        assert metrics[1]["external"]["target"] == {"type": "Value", "value": 30}
        assert hpa["spec"]["behavior"]["scaleDown"]["stabilizationWindowSeconds"] == 300


class TestGeneratePDB:
    def test_pdb_disabled(self, chart, make_release):
        assert generate_pdb(chart, make_release()) is None

    def test_pdb_min_available(self, chart, make_release):
        release = make_release({"podDisruptionBudget": {"enabled": True, "minAvailable": 2}})
        pdb = generate_pdb(chart, release)

        assert pdb["apiVersion"] == "policy/v1"
        assert pdb["kind"] == "PodDisruptionBudget"
        assert pdb["spec"]["minAvailable"] == 2
        assert "maxUnavailable" not in pdb["spec"]
        assert pdb["spec"]["selector"]["matchLabels"] == selector_labels(chart, release)

    def test_pdb_max_unavailable(self, chart, make_release):
        release = make_release({
            "podDisruptionBudget": {
                "enabled": True,
                "minAvailable": None,
                "maxUnavailable": "25%",
            },
        })
        pdb = generate_pdb(chart, release)

        assert pdb["spec"]["maxUnavailable"] == "25%"
        assert "minAvailable" not in pdb["spec"]


class TestGenerateIngress:
    def test_ingress_disabled(self, chart, make_release):
        assert generate_ingress(chart, make_release()) is None

    def test_ingress_creation(self, chart, make_release, full_overrides):
        ingress = generate_ingress(chart, make_release(full_overrides))

        assert ingress["apiVersion"] == "networking.k8s.io/v1"
        assert ingress["kind"] == "Ingress"
        assert ingress["metadata"]["annotations"] == {
            "cert-manager.io/cluster-issuer": "letsencrypt",
        }
        assert ingress["spec"]["ingressClassName"] == "nginx"
        assert ingress["spec"]["tls"] == [
            {"hosts": ["web.example.com"], "secretName": "web-tls"},
        ]

        rule = ingress["spec"]["rules"][0]
        assert rule["host"] == "web.example.com"
        path = rule["http"]["paths"][0]
        assert path["path"] == "/"
        assert path["pathType"] == "Prefix"
        assert path["backend"]["service"] == {
            "name": "web-web-service",
            "port": {"number": 80},
        }

    def test_ingress_without_class(self, chart, make_release):
        ingress = generate_ingress(chart, make_release({"ingress": {"enabled": True}}))

        assert "ingressClassName" not in ingress["spec"]
        assert "tls" not in ingress["spec"]
        assert ingress["spec"]["rules"][0]["host"] == "chart-example.local"


class TestGenerateConfigMapAndSecret:
    def test_disabled_by_default(self, chart, make_release):
        release = make_release()
        assert generate_configmap(chart, release) is None
        assert generate_secret(chart, release) is None

    def test_configmap_data(self, chart, make_release):
        release = make_release({"configMap": {"enabled": True, "data": {"PORT": 8080}}})
        configmap = generate_configmap(chart, release)

        assert configmap["kind"] == "ConfigMap"
        assert configmap["data"] == {"PORT": "8080"}

    def test_secret_data_is_base64(self, chart, make_release):
        release = make_release({"secret": {"enabled": True, "data": {"API_KEY": "s3cr3t"}}})
        secret = generate_secret(chart, release)

        assert secret["kind"] == "Secret"
        assert secret["type"] == "Opaque"
        assert base64.b64decode(secret["data"]["API_KEY"]) == b"s3cr3t"

    def test_checksums_follow_content(self, chart, make_release):
        first = make_release({"configMap": {"enabled": True, "data": {"A": "1"}}})
        second = make_release({"configMap": {"enabled": True, "data": {"A": "2"}}})

        sums_first = compute_checksums(generate_configmap(chart, first), None)
        sums_again = compute_checksums(generate_configmap(chart, first), None)
        sums_second = compute_checksums(generate_configmap(chart, second), None)

        assert set(sums_first) == {CONFIG_CHECKSUM_ANNOTATION}
        assert sums_first == sums_again
        assert sums_first != sums_second
        assert len(sums_first[CONFIG_CHECKSUM_ANNOTATION]) == 64


class TestGenerateNetworkPolicy:
    def test_network_policy_disabled(self, chart, make_release):
        assert generate_network_policy(chart, make_release()) is None

    def test_ingress_only_policy(self, chart, make_release):
        release = make_release({"networkPolicy": {"enabled": True}})
        policy = generate_network_policy(chart, release)

        assert policy["apiVersion"] == "networking.k8s.io/v1"
        assert policy["kind"] == "NetworkPolicy"
        assert policy["spec"]["podSelector"]["matchLabels"] == selector_labels(chart, release)
        assert policy["spec"]["policyTypes"] == ["Ingress"]
        assert policy["spec"]["ingress"] == [
            {"from": [{"podSelector": {}}], "ports": [{"protocol": "TCP", "port": "http"}]},
        ]
        assert "egress" not in policy["spec"]

    def test_deny_all_ingress(self, chart, make_release):
        release = make_release({"networkPolicy": {"enabled": True, "allowSameNamespace": False}})
        policy = generate_network_policy(chart, release)

        assert policy["spec"]["ingress"] == []

    def test_custom_rules_and_egress(self, chart, make_release, full_overrides):
        policy = generate_network_policy(chart, make_release(full_overrides))

        assert policy["spec"]["policyTypes"] == ["Ingress", "Egress"]
        assert len(policy["spec"]["ingress"]) == 2
        custom = policy["spec"]["ingress"][1]
        assert custom["from"][0]["namespaceSelector"]["matchLabels"] == {
            "kubernetes.io/metadata.name": "ingress-nginx",
        }
        assert custom["ports"] == [{"protocol": "TCP", "port": "http"}]

        egress = policy["spec"]["egress"]
        assert egress[0]["to"][0]["podSelector"]["matchLabels"] == {"k8s-app": "kube-dns"}
        assert egress[1] == {
            "to": [{"ipBlock": {"cidr": "10.0.0.0/8"}}],
            "ports": [{"protocol": "TCP", "port": 5432}],
        }

    def test_port_range_keeps_end_port(self, chart, make_release):
        release = make_release({
            "networkPolicy": {
                "enabled": True,
                "egress": [
                    {
                        "peers": [{"ipBlock": {"cidr": "10.0.0.0/8"}}],
                        "ports": [{"port": 32000, "endPort": 32768, "protocol": "UDP"}],
                    },
                ],
            },
        })
        policy = generate_network_policy(chart, release)

        assert policy["spec"]["egress"][-1]["ports"] == [
            {"protocol": "UDP", "port": 32000, "endPort": 32768},
        ]

    def test_egress_without_dns(self, chart, make_release):
        release = make_release({
            "networkPolicy": {
                "enabled": True,
                "allowDNS": False,
                "egress": [{"peers": [{"podSelector": {}}]}],
            },
        })
        policy = generate_network_policy(chart, release)

        assert policy["spec"]["egress"] == [{"to": [{"podSelector": {}}]}]


class TestGenerateServiceAccountAndRbac:
    def test_service_account_creation(self, chart, make_release):
        release = make_release({
            "serviceAccount": {
                "annotations": {"iam.gke.io/gcp-service-account": "web@project.iam.gserviceaccount.com"},
            },
        })
        sa = generate_service_account(chart, release)

        assert sa["kind"] == "ServiceAccount"
        assert sa["metadata"]["name"] == "web-web-service"
        assert sa["metadata"]["annotations"] == {
            "iam.gke.io/gcp-service-account": "web@project.iam.gserviceaccount.com",
        }
        assert sa["automountServiceAccountToken"] is False

    def test_service_account_not_created(self, chart, make_release):
        release = make_release({"serviceAccount": {"create": False}})
        assert generate_service_account(chart, release) is None

        pod_spec = generate_deployment(chart, release)["spec"]["template"]["spec"]
        assert pod_spec["serviceAccountName"] == "default"

    def test_rbac_disabled(self, chart, make_release):
        release = make_release()
        assert generate_role(chart, release) is None
        assert generate_role_binding(chart, release) is None

    def test_role_binding_subjects_service_account(self, chart, make_release, full_overrides):
        release = make_release(full_overrides)
        role = generate_role(chart, release)
        binding = generate_role_binding(chart, release)

        assert role["rules"][0]["verbs"] == ["get", "list"]
        assert binding["roleRef"] == {
            "apiGroup": "rbac.authorization.k8s.io",
            "kind": "Role",
            "name": role["metadata"]["name"],
        }
        assert binding["subjects"] == [
            {"kind": "ServiceAccount", "name": "web-web-service", "namespace": "prod"},
        ]


class TestGenerateServiceMonitor:
    def test_service_monitor_disabled(self, chart, make_release):
        assert generate_service_monitor(chart, make_release()) is None

    def test_service_monitor_creation(self, chart, make_release, full_overrides):
        release = make_release(full_overrides)
        monitor = generate_service_monitor(chart, release)

        assert monitor["apiVersion"] == "monitoring.coreos.com/v1"
        assert monitor["kind"] == "ServiceMonitor"
        assert monitor["metadata"]["namespace"] == "prod"
        assert monitor["metadata"]["labels"]["release"] == "prometheus"
        assert monitor["spec"]["selector"]["matchLabels"] == selector_labels(chart, release)
        assert monitor["spec"]["namespaceSelector"] == {"matchNames": ["prod"]}
        assert monitor["spec"]["endpoints"] == [
            {"port": "http", "path": "/metrics", "interval": "30s", "scrapeTimeout": "10s"},
        ]

    def test_service_monitor_in_monitoring_namespace(self, chart, make_release):
        release = make_release({"serviceMonitor": {"enabled": True, "namespace": "monitoring"}})
        monitor = generate_service_monitor(chart, release)

        assert monitor["metadata"]["namespace"] == "monitoring"
        assert monitor["spec"]["namespaceSelector"] == {"matchNames": ["prod"]}


class TestGenerateAllManifests:
    def test_default_manifests(self, chart, make_release):
        manifests = generate_all_manifests(chart, make_release())

        assert _kinds(manifests) == ["ServiceAccount", "Service", "Deployment"]

    def test_all_manifests_generated(self, chart, make_release, full_overrides):
        manifests = generate_all_manifests(chart, make_release(full_overrides))

        assert _kinds(manifests) == [
            "NetworkPolicy",
            "PodDisruptionBudget",
            "ServiceAccount",
            "Secret",
            "ConfigMap",
            "Role",
            "RoleBinding",
            "Service",
            "Deployment",
            "HorizontalPodAutoscaler",
            "Ingress",
            "ServiceMonitor",
        ]

    def test_deployment_carries_checksums(self, chart, make_release, full_overrides):
        manifests = generate_all_manifests(chart, make_release(full_overrides))
        deployment = _find(manifests, "Deployment")

        annotations = deployment["spec"]["template"]["metadata"]["annotations"]
        assert annotations == compute_checksums(
            _find(manifests, "ConfigMap"),
            _find(manifests, "Secret"),
        )
        assert SECRET_CHECKSUM_ANNOTATION in annotations

    def test_config_change_changes_pod_template(self, chart, make_release):
        before = generate_all_manifests(
            chart, make_release({"configMap": {"enabled": True, "data": {"A": "1"}}})
        )
        after = generate_all_manifests(
            chart, make_release({"configMap": {"enabled": True, "data": {"A": "2"}}})
        )

        template_before = _find(before, "Deployment")["spec"]["template"]
        template_after = _find(after, "Deployment")["spec"]["template"]
        assert template_before != template_after

    @pytest.mark.parametrize(
        "overrides,kind",
        [
            ({"ingress": {"enabled": True}}, "Ingress"),
            ({"autoscaling": {"enabled": True}}, "HorizontalPodAutoscaler"),
            ({"serviceMonitor": {"enabled": True}}, "ServiceMonitor"),
            ({"rbac": {"create": True}}, "Role"),
            ({"rbac": {"create": True}}, "RoleBinding"),
        ],
    )
    def test_optional_resource_follows_flag(self, chart, make_release, overrides, kind):
        assert kind not in _kinds(generate_all_manifests(chart, make_release()))
        assert kind in _kinds(generate_all_manifests(chart, make_release(overrides)))

    def test_replicas_with_autoscaling_and_no_ingress(self, chart, make_release):
        release = make_release({
            "replicaCount": 6,
            "autoscaling": {"enabled": True, "minReplicas": 3, "maxReplicas": 30},
            "ingress": {"enabled": False},
        })
        manifests = generate_all_manifests(chart, release)

        deployment = _find(manifests, "Deployment")
        hpa = _find(manifests, "HorizontalPodAutoscaler")

        assert deployment["spec"]["replicas"] == 6
        assert hpa["spec"]["scaleTargetRef"]["name"] == deployment["metadata"]["name"]
        assert hpa["spec"]["minReplicas"] == 3
        assert hpa["spec"]["maxReplicas"] == 30
        assert "Ingress" not in _kinds(manifests)
