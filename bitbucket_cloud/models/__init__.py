"""Bitbucket resource models."""

from .bitbucket import (
    Account,
    Branch,
    CodeSearchFile,
    CodeSearchResult,
    Commit,
    CommitStatus,
    DefaultReviewer,
    DefaultReviewerWithType,
    EffectiveDefaultReviewer,
    PaginatedResponse,
    Pipeline,
    PipelineVariable,
    Project,
    PullRequest,
    PullRequestEndpoint,
    Repository,
    User,
    Workspace,
    WorkspaceMembership,
    WorkspaceWithPermission,
)

__all__ = [
    "Account",
    "Branch",
    "CodeSearchFile",
    "CodeSearchResult",
    "Commit",
    "CommitStatus",
    "DefaultReviewer",
    "DefaultReviewerWithType",
    "EffectiveDefaultReviewer",
    "PaginatedResponse",
    "Pipeline",
    "PipelineVariable",
    "Project",
    "PullRequest",
    "PullRequestEndpoint",
    "Repository",
    "User",
    "Workspace",
    "WorkspaceMembership",
    "WorkspaceWithPermission",
]
