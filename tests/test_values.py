"""Tests for helm_manifest_ingest.values."""

import textwrap

import pytest

from helm_manifest_ingest.values import (
    ACCOUNT_KEYS,
    extract_deployment_metadata,
    extract_from_configmap_data,
    load_values,
    lookup,
)


class TestLoadValues:
    @pytest.mark.parametrize("raw", [None, "", "null", "- a\n- b\n", "key: [unclosed"])
    def test_unusable_blocks(self, raw: str | None) -> None:
        assert load_values(raw) == {}

    def test_mapping(self) -> None:
        assert load_values("region: us-east-1\n") == {"region": "us-east-1"}


class TestLookup:
    def test_first_key_wins(self) -> None:
        values = {"account_id": "222222222222", "accountId": "111111111111"}
        assert lookup(values, ACCOUNT_KEYS) == "111111111111"

    def test_unquoted_account_id(self) -> None:
        assert lookup({"accountId": 123456789012}, ACCOUNT_KEYS) == "123456789012"

    def test_ignores_booleans_and_blanks(self) -> None:
        assert lookup({"accountId": True, "account_id": ""}, ACCOUNT_KEYS) is None

    def test_section_must_be_mapping(self) -> None:
        assert lookup({"aws": "not-a-mapping"}, ACCOUNT_KEYS) is None


class TestExtractDeploymentMetadata:
    def test_top_level_keys(self) -> None:
        meta = extract_deployment_metadata(
            "accountId: 123456789012\nregion: us-east-1\nclusterName: prod\n"
        )
        assert meta is not None
        assert meta.account_id == "123456789012"
        assert meta.region == "us-east-1"
        assert meta.cluster == "prod"

    def test_nested_sections(self) -> None:
        values = textwrap.dedent("""\
            app:
              env: staging
              cluster_name: stage-eks
            aws:
              region: eu-west-1
            global:
              accountId: "210987654321"
            """)
        meta = extract_deployment_metadata(values)
        assert meta is not None
        assert meta.region == "eu-west-1"
        assert meta.cluster == "stage-eks"
        assert meta.account_id == "210987654321"
        assert meta.environment == "staging"

    def test_top_level_beats_sections(self) -> None:
        meta = extract_deployment_metadata("region: us-east-2\naws:\n  region: eu-west-1\n")
        assert meta is not None
        assert meta.region == "us-east-2"

    @pytest.mark.parametrize("raw", [None, "null", "{}", "replicaCount: 2\n"])
    def test_nothing_found(self, raw: str | None) -> None:
        assert extract_deployment_metadata(raw) is None


class TestExtractFromConfigMapData:
    def test_embedded_yaml(self) -> None:
        data = {"config.yaml": "aws:\n  region: eu-west-1\ncluster: prod-eks\n"}
        meta = extract_from_configmap_data(data)
        assert meta.region == "eu-west-1"
        assert meta.cluster == "prod-eks"
        assert meta.account_id is None

    def test_env_file(self) -> None:
        data = {"app.env": "AWS_REGION=us-east-2\nCLUSTER_NAME=staging-eks\n"}
        meta = extract_from_configmap_data(data)
        assert meta.region == "us-east-2"
        assert meta.cluster == "staging-eks"

    def test_arn_value(self) -> None:
        meta = extract_from_configmap_data({"QUEUE": "arn:aws:sqs:ap-south-1:210987654321:jobs"})
        assert meta.region == "ap-south-1"
        assert meta.account_id == "210987654321"

    def test_first_value_wins(self) -> None:
        meta = extract_from_configmap_data(
            {"a": "region: us-east-1", "b": "region: eu-west-1"}
        )
        assert meta.region == "us-east-1"

    def test_non_string_values_skipped(self) -> None:
        meta = extract_from_configmap_data({"count": 3, "nested": {"region": "us-east-1"}})
        assert meta.is_empty
