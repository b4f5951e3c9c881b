"""CI provider detection from environment variables."""

import os
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class CIContext:
    """Where the current process is running and what it is building."""

    is_ci: bool = False
    provider: Optional[str] = None  # github | gitlab | jenkins | unknown
    branch: Optional[str] = None
    commit_hash: Optional[str] = None
    pull_request_id: Optional[str] = None
    build_number: Optional[str] = None


def detect_ci_environment(env: Optional[Mapping[str, str]] = None) -> CIContext:
    """Detect GitHub Actions, GitLab CI, Jenkins or a generic ``CI`` runner.

    Args:
        env: Environment mapping; defaults to ``os.environ``

    Returns:
        CIContext with ``is_ci=False`` when no provider is recognized
    """
    env = os.environ if env is None else env

    if env.get("GITHUB_ACTIONS"):
        return CIContext(
            is_ci=True,
            provider="github",
            branch=env.get("GITHUB_REF_NAME"),
            commit_hash=env.get("GITHUB_SHA"),
            pull_request_id=(
                env.get("GITHUB_EVENT_NUMBER")
                if env.get("GITHUB_EVENT_NAME") == "pull_request"
                else None
            ),
            build_number=env.get("GITHUB_RUN_NUMBER"),
        )

    if env.get("GITLAB_CI"):
        return CIContext(
            is_ci=True,
            provider="gitlab",
            branch=env.get("CI_COMMIT_REF_NAME"),
            commit_hash=env.get("CI_COMMIT_SHA"),
            pull_request_id=env.get("CI_MERGE_REQUEST_IID"),
            build_number=env.get("CI_PIPELINE_ID"),
        )

    if env.get("JENKINS_URL"):
        return CIContext(
            is_ci=True,
            provider="jenkins",
            branch=env.get("GIT_BRANCH"),
            commit_hash=env.get("GIT_COMMIT"),
            build_number=env.get("BUILD_NUMBER"),
        )

    if env.get("CI"):
        return CIContext(
            is_ci=True,
            provider="unknown",
            branch=env.get("BRANCH"),
            commit_hash=env.get("COMMIT_SHA"),
        )

    return CIContext()
