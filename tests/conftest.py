"""Shared test fixtures."""

from __future__ import annotations

import json
import textwrap

import pytest

from helm_manifest_ingest.observer import RecordingObserver

DRY_RUN_TRANSCRIPT = textwrap.dedent("""\
    NAME: demo-release
    LAST DEPLOYED: Mon Jan  1 00:00:00 2024
    NAMESPACE: staging
    STATUS: pending-install
    REVISION: 1
    TEST SUITE: None
    USER-SUPPLIED VALUES:
    accountId: "123456789012"
    region: us-west-2
    cluster: prod-eks

    COMPUTED VALUES:
    accountId: "123456789012"
    replicaCount: 2

    HOOKS:
    MANIFEST:
    ---
    # Source: demo/templates/configmap.yaml
    apiVersion: v1
    kind: ConfigMap
    metadata:
      name: demo-config
      namespace: staging
    data:
      LOG_LEVEL: info
    ---
    # Source: demo/templates/deployment.yaml
    apiVersion: apps/v1
    kind: Deployment
    metadata:
      name: demo-web
      namespace: staging
      labels:
        app: demo-web
    spec:
      replicas: 2
      selector:
        matchLabels:
          app: demo-web
      template:
        metadata:
          labels:
            app: demo-web
        spec:
          containers:
            - name: web
              image: nginx:1.25
              envFrom:
                - configMapRef:
                    name: demo-config

    NOTES:
    Thank you for installing demo.
    """)

TEMPLATE_STREAM = textwrap.dedent("""\
    ---
    # Source: web/templates/service.yaml
    apiVersion: v1
    kind: Service
    metadata:
      name: web
      namespace: production
      annotations:
        service.beta.kubernetes.io/aws-load-balancer-type: nlb
    spec:
      type: LoadBalancer
      selector:
        app: web
      ports:
        - port: 80
    ---
    # Source: web/templates/deployment.yaml
    apiVersion: apps/v1
    kind: Deployment
    metadata:
      name: web
      namespace: production
      labels:
        app: web
        topology.kubernetes.io/region: eu-west-1
    spec:
      replicas: 3
      selector:
        matchLabels:
          app: web
      template:
        metadata:
          labels:
            app: web
        spec:
          containers:
            - name: web
              image: registry.example.com/web:2.1.0
              env:
                - name: QUEUE_ARN
                  value: arn:aws:sqs:eu-west-1:111122223333:orders
    """)


def pod_doc(name: str = "nginx", **extra: object) -> dict:
    doc = {
        "apiVersion": "v1",
        "kind": "Pod",
        "metadata": {"name": name, "namespace": "default"},
        "spec": {"containers": [{"name": name, "image": f"{name}:latest"}]},
    }
    doc.update(extra)
    return doc


def service_doc(name: str = "nginx") -> dict:
    return {
        "apiVersion": "v1",
        "kind": "Service",
        "metadata": {"name": name},
        "spec": {"selector": {"app": name}, "ports": [{"port": 80}]},
    }


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep HELM_INGEST_* variables from the outer shell out of Settings()."""
    for name in (
        "HELM_INGEST_REGION",
        "HELM_INGEST_CLUSTER",
        "HELM_INGEST_ACCOUNT_ID",
        "HELM_INGEST_RELEASE_NAME",
        "HELM_INGEST_NAMESPACE",
        "HELM_INGEST_RESOURCE_TYPES",
        "HELM_INGEST_NAMESPACES",
    ):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture()
def observer() -> RecordingObserver:
    return RecordingObserver()


@pytest.fixture()
def transcript() -> str:
    return DRY_RUN_TRANSCRIPT


@pytest.fixture()
def template_stream() -> str:
    return TEMPLATE_STREAM


@pytest.fixture()
def pod_and_service_json() -> str:
    return json.dumps([pod_doc(), service_doc()])


@pytest.fixture()
def make_pod():
    return pod_doc


@pytest.fixture()
def make_service():
    return service_doc
