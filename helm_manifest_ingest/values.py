"""Read cluster identity out of Helm values and ConfigMap payloads.

Charts spell the same setting many ways (``accountId``, ``aws_account_id``,
``global.region`` ...), so every lookup walks a fixed list of candidate keys
across the top level and the ``app``, ``aws`` and ``global`` sections.
"""

from __future__ import annotations

import re
from typing import Any

import yaml

from helm_manifest_ingest.arn import account_from_arn, find_arns, region_from_arn
from helm_manifest_ingest.models import DeploymentMetadata, as_mapping, as_str

# (section, key) pairs in lookup order; section "" is the top level.
ACCOUNT_KEYS: list[tuple[str, str]] = [
    ("", "accountId"),
    ("", "account_id"),
    ("", "awsAccountId"),
    ("", "aws_account_id"),
    ("app", "accountId"),
    ("app", "account_id"),
    ("aws", "accountId"),
    ("aws", "account_id"),
    ("global", "accountId"),
    ("global", "account_id"),
]
REGION_KEYS: list[tuple[str, str]] = [
    ("", "region"),
    ("", "awsRegion"),
    ("", "aws_region"),
    ("app", "region"),
    ("app", "aws_region"),
    ("aws", "region"),
    ("global", "region"),
]
CLUSTER_KEYS: list[tuple[str, str]] = [
    ("", "cluster"),
    ("", "clusterName"),
    ("", "cluster_name"),
    ("", "eksCluster"),
    ("", "eks_cluster"),
    ("app", "cluster"),
    ("app", "cluster_name"),
    ("aws", "cluster"),
    ("global", "cluster"),
]
ENVIRONMENT_KEYS: list[tuple[str, str]] = [
    ("app", "env"),
    ("", "environment"),
]

# Text patterns for ConfigMap payloads (embedded YAML, JSON or env files).
REGION_TEXT_PATTERNS = [
    re.compile(r"(?:aws[_-]?)?region:\s*([a-z]{2}(?:-[a-z]+)+-\d+)", re.IGNORECASE),
    re.compile(r"(?:hub[_-]?)?region[_-]?name?:\s*([a-z]{2}(?:-[a-z]+)+-\d+)", re.IGNORECASE),
    re.compile(r"AWS_REGION[=:]\s*([a-z]{2}(?:-[a-z]+)+-\d+)", re.IGNORECASE),
]
CLUSTER_TEXT_PATTERNS = [
    re.compile(r"^cluster:\s*([a-zA-Z0-9_-]+)", re.IGNORECASE | re.MULTILINE),
    re.compile(r"cluster[_-]?name:\s*([a-zA-Z0-9_-]+)", re.IGNORECASE),
    re.compile(r"eks[_-]?cluster:\s*([a-zA-Z0-9_-]+)", re.IGNORECASE),
    re.compile(r"CLUSTER_NAME[=:]\s*([a-zA-Z0-9_-]+)", re.IGNORECASE),
]


def load_values(values_yaml: str | None) -> dict[str, Any]:
    """Decode a USER-SUPPLIED VALUES block; anything unusable becomes ``{}``."""
    if not values_yaml:
        return {}
    try:
        parsed = yaml.safe_load(values_yaml)
    except yaml.YAMLError:
        return {}
    return as_mapping(parsed)


def _scalar(value: Any) -> str | None:
    # Account ids are often written unquoted and decode as integers.
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return str(value)
    return as_str(value)


def lookup(values: dict[str, Any], keys: list[tuple[str, str]]) -> str | None:
    """Return the first non-empty value found under *keys*."""
    for section, key in keys:
        scope = values if not section else as_mapping(values.get(section))
        found = _scalar(scope.get(key))
        if found:
            return found
    return None


def extract_deployment_metadata(values_yaml: str | None) -> DeploymentMetadata | None:
    """Pull account, region, cluster and environment out of Helm values.

    Returns ``None`` when the block is absent or names none of them.
    """
    values = load_values(values_yaml)
    if not values:
        return None
    metadata = DeploymentMetadata(
        account_id=lookup(values, ACCOUNT_KEYS),
        region=lookup(values, REGION_KEYS),
        cluster=lookup(values, CLUSTER_KEYS),
        environment=lookup(values, ENVIRONMENT_KEYS),
    )
    return None if metadata.is_empty else metadata


def _first_match(patterns: list[re.Pattern[str]], text: str) -> str | None:
    for pattern in patterns:
        match = pattern.search(text)
        # Unrendered placeholders such as "${REGION}" are not values.
        if match and match.group(1) and not match.group(1).startswith("${"):
            return match.group(1)
    return None


def extract_from_configmap_data(data: dict[str, Any]) -> DeploymentMetadata:
    """Scan ConfigMap data values for ARNs and region/cluster settings."""
    region: str | None = None
    cluster: str | None = None
    account_id: str | None = None

    for value in data.values():
        if region and cluster and account_id:
            break
        if not isinstance(value, str):
            continue

        for arn in find_arns(value):
            if not region:
                region = region_from_arn(arn)
            if not account_id:
                account_id = account_from_arn(arn)

        if not region:
            region = _first_match(REGION_TEXT_PATTERNS, value)
        if not cluster:
            cluster = _first_match(CLUSTER_TEXT_PATTERNS, value)

    return DeploymentMetadata(account_id=account_id, region=region, cluster=cluster)
