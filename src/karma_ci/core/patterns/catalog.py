"""The static catalog of known CI failure signatures.

Declaration order matters: when two matching signatures share a severity,
the one declared first becomes the primary match. Keep more specific
signatures ahead of broader ones within a severity level.
"""

from __future__ import annotations

import re

from karma_ci.core.exceptions import CatalogError

from .codes import Category, Severity
from .models import FailureSignature


def _signature(
    id: str,  # noqa: A002
    name: str,
    category: Category,
    pattern: str,
    severity: Severity,
    *,
    retryable: bool,
    auto_fixable: bool,
    suggestion: str,
) -> FailureSignature:
    """Compile one catalog entry (patterns are always case-insensitive)."""
    return FailureSignature(
        id=id,
        name=name,
        category=category,
        pattern=re.compile(pattern, re.IGNORECASE),
        severity=severity,
        retryable=retryable,
        suggestion=suggestion,
        auto_fixable=auto_fixable,
    )


# =============================================================================
# Test failures
# =============================================================================

_TEST_SIGNATURES: list[FailureSignature] = [
    _signature(
        "test-assertion", "Test Assertion Failure", Category.TEST,
        r"AssertionError|expect\(.*\)\.to|assert\.|FAIL\s+src/",
        Severity.MEDIUM, retryable=False, auto_fixable=False,
        suggestion="Fix the failing test assertion. Check expected vs actual values.",
    ),
    _signature(
        "test-timeout", "Test Timeout", Category.TEST,
        r"Timeout|exceeded\s+\d+\s*ms|jest\.setTimeout",
        Severity.MEDIUM, retryable=True, auto_fixable=True,
        suggestion="Increase test timeout or optimize slow test. Consider async issues.",
    ),
    _signature(
        "test-snapshot", "Snapshot Mismatch", Category.TEST,
        r"Snapshot.*mismatch|›\s*1 snapshot.*failed|toMatchSnapshot",
        Severity.LOW, retryable=False, auto_fixable=True,
        suggestion="Update snapshots with --updateSnapshot if changes are intentional.",
    ),
    _signature(
        "test-import", "Test Import Error", Category.TEST,
        r"Cannot find module|Module not found.*in test|SyntaxError.*import",
        Severity.HIGH, retryable=False, auto_fixable=False,
        suggestion="Check import paths and ensure dependencies are installed.",
    ),
    _signature(
        "test-memory", "Test Out of Memory", Category.TEST,
        r"JavaScript heap out of memory|ENOMEM|allocation failed",
        Severity.HIGH, retryable=True, auto_fixable=True,
        suggestion="Increase Node memory limit: --max-old-space-size=4096",
    ),
    _signature(
        "test-flaky", "Flaky Test Detection", Category.TEST,
        r"RETRY|flaky|intermittent|race condition",
        Severity.LOW, retryable=True, auto_fixable=False,
        suggestion="Quarantine flaky test and investigate race conditions.",
    ),
]

# =============================================================================
# Build errors
# =============================================================================

_BUILD_SIGNATURES: list[FailureSignature] = [
    _signature(
        "build-ts-error", "TypeScript Compilation Error", Category.BUILD,
        r"error TS\d+|tsc.*error|Type.*is not assignable",
        Severity.HIGH, retryable=False, auto_fixable=False,
        suggestion="Fix TypeScript type errors before building.",
    ),
    _signature(
        "build-syntax", "Syntax Error", Category.BUILD,
        r"SyntaxError|Unexpected token|Parse error",
        Severity.HIGH, retryable=False, auto_fixable=False,
        suggestion="Fix syntax errors in source code.",
    ),
    _signature(
        "build-webpack", "Webpack Build Error", Category.BUILD,
        r"Module build failed|webpack.*error|ERROR in \./src",
        Severity.HIGH, retryable=False, auto_fixable=False,
        suggestion="Check webpack configuration and loaders.",
    ),
    _signature(
        "build-eslint", "ESLint Error", Category.BUILD,
        r"eslint.*error|✖\s+\d+\s+problems?|Lint errors",
        Severity.MEDIUM, retryable=False, auto_fixable=True,
        suggestion="Fix lint errors or adjust ESLint rules.",
    ),
    _signature(
        "build-oom", "Build Out of Memory", Category.BUILD,
        r"FATAL ERROR.*heap|Killed.*signal 9|OOMKilled",
        Severity.CRITICAL, retryable=True, auto_fixable=True,
        suggestion="Increase build memory or split into smaller chunks.",
    ),
    _signature(
        "build-docker", "Docker Build Error", Category.BUILD,
        r"docker.*build.*failed|COPY failed|RUN.*returned a non-zero",
        Severity.HIGH, retryable=True, auto_fixable=False,
        suggestion="Check Dockerfile, base image availability, and build context.",
    ),
    _signature(
        "build-rust", "Rust Compilation Error", Category.BUILD,
        r"error\[E\d+\]|cannot find.*in this scope|cargo build.*failed",
        Severity.HIGH, retryable=False, auto_fixable=False,
        suggestion="Fix Rust compilation errors.",
    ),
    _signature(
        "build-go", "Go Build Error", Category.BUILD,
        r"go build.*:.*undefined|cannot.*import|go:.*module",
        Severity.HIGH, retryable=False, auto_fixable=False,
        suggestion="Fix Go compilation errors. Run go mod tidy.",
    ),
]

# =============================================================================
# Dependency issues
# =============================================================================

_DEPENDENCY_SIGNATURES: list[FailureSignature] = [
    _signature(
        "dep-not-found", "Package Not Found", Category.DEPENDENCY,
        r"404 Not Found.*npm|ERR! 404|package.*not found",
        Severity.HIGH, retryable=True, auto_fixable=False,
        suggestion=(
            "Check package name and registry availability. "
            "May be a temporary registry issue."
        ),
    ),
    _signature(
        "dep-conflict", "Dependency Conflict", Category.DEPENDENCY,
        r"ERESOLVE|peer dep|conflicting peer|Could not resolve",
        Severity.MEDIUM, retryable=False, auto_fixable=True,
        suggestion="Resolve peer dependency conflicts. Try --legacy-peer-deps.",
    ),
    _signature(
        "dep-lockfile", "Lockfile Mismatch", Category.DEPENDENCY,
        r"lockfile.*out of date|npm ci.*can only|frozen lockfile",
        Severity.MEDIUM, retryable=False, auto_fixable=True,
        suggestion="Regenerate lockfile: npm install or yarn install.",
    ),
    _signature(
        "dep-install-fail", "Install Failure", Category.DEPENDENCY,
        r"npm ERR!|yarn error|pnpm ERR|install.*failed",
        Severity.HIGH, retryable=True, auto_fixable=True,
        suggestion="Clear cache and retry: npm cache clean --force",
    ),
    _signature(
        "dep-native", "Native Module Build Failed", Category.DEPENDENCY,
        r"node-gyp|node-pre-gyp|prebuild|gyp ERR",
        Severity.HIGH, retryable=True, auto_fixable=False,
        suggestion="Install build tools: build-essential, python3, make.",
    ),
    _signature(
        "dep-audit", "Security Vulnerability", Category.DEPENDENCY,
        r"found \d+ vulnerabilities|npm audit|high severity",
        Severity.MEDIUM, retryable=False, auto_fixable=True,
        suggestion="Run npm audit fix or update vulnerable packages.",
    ),
    _signature(
        "dep-registry", "Registry Unavailable", Category.DEPENDENCY,
        r"ETIMEDOUT.*registry|registry\.npmjs|EAI_AGAIN.*npm",
        Severity.MEDIUM, retryable=True, auto_fixable=False,
        suggestion="npm registry is temporarily down. Retry in a few minutes.",
    ),
]

# =============================================================================
# Timeouts
# =============================================================================

_TIMEOUT_SIGNATURES: list[FailureSignature] = [
    _signature(
        "timeout-global", "Job Timeout", Category.TIMEOUT,
        r"Job.*timed out|exceeded.*time limit|cancel.*timeout",
        Severity.HIGH, retryable=True, auto_fixable=True,
        suggestion="Increase job timeout or optimize slow steps.",
    ),
    _signature(
        "timeout-network", "Network Timeout", Category.TIMEOUT,
        r"ETIMEDOUT|ESOCKETTIMEDOUT|connect ETIMEDOUT|request timeout",
        Severity.MEDIUM, retryable=True, auto_fixable=False,
        suggestion="Network timeout. Retry or check connectivity.",
    ),
    _signature(
        "timeout-docker", "Docker Pull Timeout", Category.TIMEOUT,
        r"docker.*pull.*timeout|context deadline exceeded|TLS handshake timeout",
        Severity.MEDIUM, retryable=True, auto_fixable=True,
        suggestion="Docker registry slow. Retry or use cached images.",
    ),
]

# =============================================================================
# Infrastructure
# =============================================================================

_INFRASTRUCTURE_SIGNATURES: list[FailureSignature] = [
    _signature(
        "infra-disk", "Disk Space Full", Category.INFRASTRUCTURE,
        r"No space left on device|ENOSPC|disk.*full|out of disk",
        Severity.CRITICAL, retryable=True, auto_fixable=True,
        suggestion="Free disk space. Add cleanup step or increase runner disk.",
    ),
    _signature(
        "infra-runner", "Runner Unavailable", Category.INFRASTRUCTURE,
        r"no matching runner|runner.*offline|queued.*waiting",
        Severity.HIGH, retryable=True, auto_fixable=False,
        suggestion="No runners available. Check self-hosted runner status.",
    ),
    _signature(
        "infra-container", "Container Crash", Category.INFRASTRUCTURE,
        r"container.*exited|exit code 137|exit code 139|segfault|SIGSEGV",
        Severity.CRITICAL, retryable=True, auto_fixable=True,
        suggestion="Container crashed (possibly OOM killed). Increase memory limits.",
    ),
    _signature(
        "infra-service", "Service Container Failed", Category.INFRASTRUCTURE,
        r"service.*unhealthy|health check.*failed|service.*not ready",
        Severity.HIGH, retryable=True, auto_fixable=False,
        suggestion="Service container failed health check. Check service configuration.",
    ),
    _signature(
        "infra-cache", "Cache Restore Failed", Category.INFRASTRUCTURE,
        r"cache.*not found|cache.*restore.*failed|Unable to.*cache",
        Severity.LOW, retryable=True, auto_fixable=False,
        suggestion="Cache miss. Build will be slower but should succeed.",
    ),
    _signature(
        "infra-artifact", "Artifact Upload Failed", Category.INFRASTRUCTURE,
        r"artifact.*upload.*failed|Unable to.*artifact|artifact.*error",
        Severity.MEDIUM, retryable=True, auto_fixable=False,
        suggestion="Artifact upload failed. Check size limits and retry.",
    ),
]

# =============================================================================
# Permissions and credentials
# =============================================================================

_PERMISSION_SIGNATURES: list[FailureSignature] = [
    _signature(
        "perm-token", "Token Expired/Invalid", Category.PERMISSION,
        r"Bad credentials|401 Unauthorized|token.*expired|GITHUB_TOKEN",
        Severity.CRITICAL, retryable=False, auto_fixable=False,
        suggestion="Authentication failed. Refresh or rotate tokens.",
    ),
    _signature(
        "perm-access", "Permission Denied", Category.PERMISSION,
        r"Permission denied|403 Forbidden|EACCES|insufficient permissions",
        Severity.HIGH, retryable=False, auto_fixable=False,
        suggestion="Check repository permissions and token scopes.",
    ),
    _signature(
        "perm-rate-limit", "API Rate Limited", Category.PERMISSION,
        r"rate limit|429 Too Many|API rate.*exceeded|secondary rate",
        Severity.MEDIUM, retryable=True, auto_fixable=True,
        suggestion="Rate limited. Wait and retry with backoff.",
    ),
    _signature(
        "perm-ssh", "SSH Key Issue", Category.PERMISSION,
        r"Host key verification|Permission denied.*publickey|git@.*Permission denied",
        Severity.HIGH, retryable=False, auto_fixable=False,
        suggestion="SSH key not configured. Add deploy key or use HTTPS.",
    ),
]

# =============================================================================
# Network
# =============================================================================

_NETWORK_SIGNATURES: list[FailureSignature] = [
    _signature(
        "net-dns", "DNS Resolution Failed", Category.NETWORK,
        r"ENOTFOUND|getaddrinfo.*failed|DNS.*resolution|EAI_AGAIN",
        Severity.MEDIUM, retryable=True, auto_fixable=False,
        suggestion="DNS resolution failed. Transient network issue, retry.",
    ),
    _signature(
        "net-ssl", "SSL/TLS Error", Category.NETWORK,
        r"SSL.*error|certificate.*expired|UNABLE_TO_VERIFY|self.signed",
        Severity.HIGH, retryable=False, auto_fixable=False,
        suggestion=(
            "SSL certificate issue. Check certificates or set "
            "NODE_TLS_REJECT_UNAUTHORIZED."
        ),
    ),
    _signature(
        "net-proxy", "Proxy Error", Category.NETWORK,
        r"proxy.*error|ECONNREFUSED.*proxy|HTTP_PROXY|tunnel.*failed",
        Severity.MEDIUM, retryable=True, auto_fixable=False,
        suggestion="Proxy connection failed. Check proxy configuration.",
    ),
    _signature(
        "net-connection-reset", "Connection Reset", Category.NETWORK,
        r"ECONNRESET|connection.*reset|socket hang up|EPIPE",
        Severity.MEDIUM, retryable=True, auto_fixable=False,
        suggestion="Connection was reset. Transient issue, retry.",
    ),
    _signature(
        "net-download", "Download Failed", Category.NETWORK,
        r"curl.*failed|wget.*error|download.*failed|fetch.*failed",
        Severity.MEDIUM, retryable=True, auto_fixable=False,
        suggestion="Download failed. Check URL and retry.",
    ),
]

# =============================================================================
# Resource limits
# =============================================================================

_RESOURCE_SIGNATURES: list[FailureSignature] = [
    _signature(
        "res-cpu", "CPU Limit Exceeded", Category.RESOURCE,
        r"CPU.*limit|throttled|cpu.*quota",
        Severity.HIGH, retryable=True, auto_fixable=False,
        suggestion="CPU throttled. Optimize build or increase runner resources.",
    ),
    _signature(
        "res-memory", "Memory Limit Exceeded", Category.RESOURCE,
        r"memory.*limit|OOMKilled|cgroup.*memory|oom-kill",
        Severity.CRITICAL, retryable=True, auto_fixable=True,
        suggestion="Memory limit exceeded. Increase memory or optimize usage.",
    ),
    _signature(
        "res-file-limit", "File Descriptor Limit", Category.RESOURCE,
        r"EMFILE|Too many open files|ulimit|file.*descriptor",
        Severity.MEDIUM, retryable=True, auto_fixable=True,
        suggestion="Too many open files. Increase ulimit or close unused handles.",
    ),
    _signature(
        "res-inode", "Inode Exhaustion", Category.RESOURCE,
        r"no space.*inode|inode.*full|ENOSPC.*inode",
        Severity.HIGH, retryable=True, auto_fixable=False,
        suggestion="Inodes exhausted. Clean up small files or increase inode count.",
    ),
]

# =============================================================================
# Platform specific (GitHub Actions, deployments)
# =============================================================================

_PLATFORM_SIGNATURES: list[FailureSignature] = [
    _signature(
        "gh-checkout", "Git Checkout Failed", Category.INFRASTRUCTURE,
        r"fatal:.*fetch|checkout.*failed|reference.*not.*tree|shallow.*update",
        Severity.HIGH, retryable=True, auto_fixable=True,
        suggestion="Git checkout failed. Try with fetch-depth: 0 for full clone.",
    ),
    _signature(
        "gh-action-version", "Action Version Not Found", Category.DEPENDENCY,
        r"Unable to resolve action|action.*version.*not found|uses:.*not found",
        Severity.HIGH, retryable=False, auto_fixable=False,
        suggestion="Action version not found. Pin to a valid tag or SHA.",
    ),
    _signature(
        "gh-concurrency", "Concurrency Cancellation", Category.INFRASTRUCTURE,
        r"cancelled.*concurrency|superseded|canceled by.*workflow",
        Severity.LOW, retryable=False, auto_fixable=False,
        suggestion=(
            "Workflow cancelled by newer run. "
            "This is expected with concurrency groups."
        ),
    ),
    _signature(
        "gh-matrix", "Matrix Job Failed", Category.BUILD,
        r"matrix.*fail|fail-fast|job.*matrix.*failed",
        Severity.MEDIUM, retryable=True, auto_fixable=False,
        suggestion="Matrix job failed. Check individual matrix combination logs.",
    ),
    _signature(
        "deploy-health", "Deployment Health Check Failed", Category.INFRASTRUCTURE,
        r"health.*check.*fail|deploy.*unhealthy|readiness.*probe|liveness.*probe",
        Severity.CRITICAL, retryable=True, auto_fixable=False,
        suggestion=(
            "Deployment health check failed. "
            "Check application logs and health endpoint."
        ),
    ),
    _signature(
        "deploy-rollback", "Deployment Rollback", Category.INFRASTRUCTURE,
        r"rolling back|rollback.*triggered|deployment.*failed.*rolling",
        Severity.CRITICAL, retryable=False, auto_fixable=False,
        suggestion="Deployment rolled back. Check logs and fix before redeploying.",
    ),
]


def _validate_catalog(signatures: tuple[FailureSignature, ...]) -> None:
    """Check catalog invariants: unique ids and non-empty suggestions.

    Raises:
        CatalogError: On the first violation found.
    """
    seen: set[str] = set()
    for signature in signatures:
        if signature.id in seen:
            raise CatalogError(f"Duplicate failure signature id: {signature.id!r}")
        if not signature.suggestion.strip():
            raise CatalogError(f"Failure signature {signature.id!r} has no suggestion")
        seen.add(signature.id)


SIGNATURES: tuple[FailureSignature, ...] = (
    *_TEST_SIGNATURES,
    *_BUILD_SIGNATURES,
    *_DEPENDENCY_SIGNATURES,
    *_TIMEOUT_SIGNATURES,
    *_INFRASTRUCTURE_SIGNATURES,
    *_PERMISSION_SIGNATURES,
    *_NETWORK_SIGNATURES,
    *_RESOURCE_SIGNATURES,
    *_PLATFORM_SIGNATURES,
)
"""Every known failure signature, in declaration (tie-break) order."""

_validate_catalog(SIGNATURES)
