#!/usr/bin/env python3
"""Security validation utilities for bonjour-gitlab."""

import ipaddress
import os
import re
import sys
from typing import List, Optional
from urllib.parse import urlparse


class SecurityValidator:
    """Security validation utilities for input sanitization and validation."""

    # GitHub caps repository names at 100 characters
    MAX_REPO_NAME_LENGTH = 100
    MAX_URL_LENGTH = 2048
    MAX_NAMESPACE_LENGTH = 255
    MAX_PATH_LENGTH = 500
    MAX_PATTERN_LENGTH = 100

    SAFE_REPO_NAME_PATTERN = re.compile(r"^[a-z0-9._-]+$")
    SAFE_NAMESPACE_PATTERN = re.compile(r"^[A-Za-z0-9._/-]+$")

    @staticmethod
    def _has_control_chars(value: str) -> bool:
        return "\x00" in value or any(ord(c) < 32 for c in value)

    @classmethod
    def validate_repo_name(cls, name: str) -> str:
        """Validate a (lowercased) repository name before it reaches a path or URL."""
        if not name or not isinstance(name, str):
            raise ValueError("Repository name must be a non-empty string")

        if len(name) > cls.MAX_REPO_NAME_LENGTH:
            raise ValueError(
                f"Repository name exceeds maximum length of {cls.MAX_REPO_NAME_LENGTH}"
            )

        # Names become directory names inside the workspace
        if name in (".", "..") or "/" in name or "\\" in name:
            raise ValueError("Repository name contains invalid path characters")

        if cls._has_control_chars(name):
            raise ValueError(
                "Repository name contains null bytes or control characters"
            )

        if not cls.SAFE_REPO_NAME_PATTERN.match(name):
            raise ValueError(f"Repository name contains invalid characters: {name}")

        return name

    @classmethod
    def validate_url(cls, url: str, allowed_schemes: Optional[List[str]] = None) -> str:
        """Validate URL for security."""
        if not url or not isinstance(url, str):
            raise ValueError("URL must be a non-empty string")

        if len(url) > cls.MAX_URL_LENGTH:
            raise ValueError(f"URL exceeds maximum length of {cls.MAX_URL_LENGTH}")

        if cls._has_control_chars(url):
            raise ValueError("URL contains null bytes or control characters")

        if url.startswith("git@"):
            scheme = "ssh"
            host = url[len("git@"):].split(":", 1)[0]
        elif url.startswith(("http://", "https://")):
            parsed = urlparse(url)
            scheme = parsed.scheme.lower()
            host = parsed.hostname or ""
        else:
            raise ValueError("URL must use http, https, or SSH (git@) scheme")

        if allowed_schemes and scheme not in allowed_schemes:
            raise ValueError(
                f"URL scheme '{scheme}' not in allowed schemes: {allowed_schemes}"
            )

        if not host:
            raise ValueError("URL has no host")

        # Self-hosted instances on private networks are legitimate, so only warn.
        # Written straight to stderr to avoid a circular import with the logger.
        if host == "localhost" or cls._is_private_address(host):
            sys.stderr.write(
                f"WARNING: URL points at a local or private address: {host}\n"
            )

        return url

    @staticmethod
    def _is_private_address(host: str) -> bool:
        try:
            address = ipaddress.ip_address(host)
        except ValueError:
            return False
        return address.is_private or address.is_loopback or address.is_link_local

    @classmethod
    def validate_namespace(cls, namespace: str) -> str:
        """Validate a GitLab namespace (user or group path)."""
        if not namespace or not isinstance(namespace, str):
            raise ValueError("Namespace must be a non-empty string")

        if len(namespace) > cls.MAX_NAMESPACE_LENGTH:
            raise ValueError(
                f"Namespace exceeds maximum length of {cls.MAX_NAMESPACE_LENGTH}"
            )

        if cls._has_control_chars(namespace):
            raise ValueError("Namespace contains null bytes or control characters")

        if ".." in namespace:
            raise ValueError("Namespace contains path traversal sequences")

        if not cls.SAFE_NAMESPACE_PATTERN.match(namespace):
            raise ValueError("Namespace contains invalid characters")

        return namespace.strip("/")

    @classmethod
    def validate_pattern(cls, pattern: str) -> str:
        if len(pattern) > cls.MAX_PATTERN_LENGTH:
            raise ValueError(
                f"exclude pattern too long (max {cls.MAX_PATTERN_LENGTH} characters)"
            )
        if cls._has_control_chars(pattern):
            raise ValueError("exclude pattern contains control characters")
        return pattern.lower()

    @classmethod
    def validate_file_path(cls, path: str) -> str:
        """Validate file path for security."""
        if not path or not isinstance(path, str):
            raise ValueError("File path must be a non-empty string")

        if len(path) > cls.MAX_PATH_LENGTH:
            raise ValueError(
                f"File path exceeds maximum length of {cls.MAX_PATH_LENGTH}"
            )

        if "\x00" in path:
            raise ValueError("File path contains null bytes")

        if ".." in path.replace("\\", "/").split("/"):
            raise ValueError("File path contains path traversal sequences")

        return os.path.normpath(os.path.expanduser(path))

    @classmethod
    def sanitize_for_logging(cls, message: str) -> str:
        """Sanitize message for safe logging by removing potential credentials."""
        if not message:
            return message

        patterns = [
            (r"(https?://)[^/@\s]+@", r"\1[REDACTED]@"),  # URLs with credentials
            (r"token[=:]\s*[^\s]+", "token=[REDACTED]"),
            (r"password[=:]\s*[^\s]+", "password=[REDACTED]"),
            (r"glpat-[A-Za-z0-9_.-]+", "[GITLAB_TOKEN_REDACTED]"),
            (r"gh[pousr]_[A-Za-z0-9_]+", "[GITHUB_TOKEN_REDACTED]"),
            (r"github_pat_[A-Za-z0-9_]+", "[GITHUB_TOKEN_REDACTED]"),
        ]

        sanitized = message
        for pattern, replacement in patterns:
            sanitized = re.sub(pattern, replacement, sanitized, flags=re.IGNORECASE)

        return sanitized
