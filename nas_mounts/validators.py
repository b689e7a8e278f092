#!/usr/bin/env python3

"""Validation utilities for NAS mount configuration."""

import re

SHARE_NAME_PATTERN = r'^[A-Za-z0-9][A-Za-z0-9_-]*$'


def validate_ip_address(ip: str) -> bool:
    """Validate an IPv4 address."""
    pattern = r'^(\d{1,3}\.){3}\d{1,3}$'
    if not re.match(pattern, ip):
        return False
    octets = ip.split('.')
    return all(0 <= int(octet) <= 255 for octet in octets)


def validate_host(host: str) -> bool:
    """Validate a hostname or IP address."""
    normalized_host = host.lower().rstrip('.')
    if validate_ip_address(normalized_host):
        return True
    hostname_pattern = r'^([a-zA-Z0-9]([a-zA-Z0-9\-]{0,61}[a-zA-Z0-9])?\.)*[a-zA-Z0-9]([a-zA-Z0-9\-]{0,61}[a-zA-Z0-9])?$'
    return bool(re.match(hostname_pattern, normalized_host))


def validate_share_name(share: str) -> bool:
    """Validate a share name usable as an autofs map key and mount directory."""
    return bool(re.fullmatch(SHARE_NAME_PATTERN, share))
