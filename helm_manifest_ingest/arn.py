"""Anchored pattern matchers for AWS identifiers embedded in free-form strings.

ARN layout: ``arn:partition:service:region:account-id:resource``.  Global
services (IAM, S3) leave the region and sometimes the account empty.
"""

from __future__ import annotations

import re

# Partition may be aws, aws-cn or aws-us-gov.  The account is optional
# (S3 bucket ARNs) and the resource may contain wildcards.
ARN_PATTERN = re.compile(
    r"(?<![\w-])arn:aws(?:-[a-z]+)*:[a-z0-9-]+:(?:[a-z]{2}(?:-[a-z]+)+-\d+)?:(?:\d{12})?:[\w\-/:.*@+=]+"
)
REGION_PATTERN = re.compile(r"^[a-z]{2}(?:-[a-z]+)+-\d+$")
ZONE_PATTERN = re.compile(r"^([a-z]{2}(?:-[a-z]+)+-\d+)[a-z]$")
ACCOUNT_ID_PATTERN = re.compile(r"^\d{12}$")


def find_arns(text: str) -> list[str]:
    """Return every ARN-shaped substring of *text*, in order of appearance."""
    if not isinstance(text, str) or "arn:" not in text:
        return []
    return [match.rstrip(".:") for match in ARN_PATTERN.findall(text)]


def is_region(value: object) -> bool:
    return isinstance(value, str) and bool(REGION_PATTERN.match(value))


def is_account_id(value: object) -> bool:
    return isinstance(value, str) and bool(ACCOUNT_ID_PATTERN.match(value))


def region_from_arn(arn: str) -> str | None:
    parts = arn.split(":")
    if len(parts) >= 4 and is_region(parts[3]):
        return parts[3]
    return None


def account_from_arn(arn: str) -> str | None:
    parts = arn.split(":")
    if len(parts) >= 5 and is_account_id(parts[4]):
        return parts[4]
    return None


def region_from_zone(zone: str) -> str | None:
    """``us-east-1a`` -> ``us-east-1``; anything else -> ``None``."""
    match = ZONE_PATTERN.match(zone) if isinstance(zone, str) else None
    return match.group(1) if match else None


def normalize_account_id(account_id: str | None) -> str | None:
    """Strip formatting such as dashes from an account id.

    Falls back to the trimmed input when it holds no digits at all.
    """
    if not account_id:
        return None
    digits = re.sub(r"\D", "", account_id)
    return digits or account_id.strip() or None
