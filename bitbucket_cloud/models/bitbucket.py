"""Bitbucket Cloud resource shapes.

Models are immutable and keep any field the API returns that is not
declared here (``extra="allow"``), so responses pass through untouched.
"""

from typing import Any, Dict, Generic, List, Optional, TypeVar

from pydantic import BaseModel, ConfigDict, Field


class BitbucketModel(BaseModel):
    model_config = ConfigDict(extra="allow", frozen=True)


T = TypeVar("T")

Links = Dict[str, Any]


class PaginatedResponse(BitbucketModel, Generic[T]):
    """Envelope returned by every list endpoint"""
    values: List[T] = Field(default_factory=list)
    page: Optional[int] = None
    pagelen: Optional[int] = None
    size: Optional[int] = None
    next: Optional[str] = None
    previous: Optional[str] = None


# Accounts

class Account(BitbucketModel):
    uuid: Optional[str] = None
    display_name: Optional[str] = None
    nickname: Optional[str] = None
    account_id: Optional[str] = None
    type: Optional[str] = None
    created_on: Optional[str] = None
    links: Optional[Links] = None


class User(Account):
    account_status: Optional[str] = None
    has_2fa_enabled: Optional[bool] = None
    is_staff: Optional[bool] = None


class DefaultReviewer(User):
    """Account returned by the default reviewer endpoints"""


class EffectiveDefaultReviewer(BitbucketModel):
    """Raw item of the effective-default-reviewers envelope"""
    type: Optional[str] = None
    reviewer_type: str
    user: DefaultReviewer


class DefaultReviewerWithType(DefaultReviewer):
    """Reviewer flattened with where it is defined ("project" or "repository")"""
    reviewer_type: str


# Workspaces and projects

class Workspace(BitbucketModel):
    uuid: Optional[str] = None
    name: Optional[str] = None
    slug: Optional[str] = None
    is_private: Optional[bool] = None
    is_privacy_enforced: Optional[bool] = None
    created_on: Optional[str] = None
    updated_on: Optional[str] = None
    links: Optional[Links] = None


class WorkspaceMembership(BitbucketModel):
    permission: str
    workspace: Workspace
    user: Optional[Account] = None
    links: Optional[Links] = None


class WorkspaceWithPermission(Workspace):
    permission: str


class Project(BitbucketModel):
    uuid: Optional[str] = None
    key: Optional[str] = None
    name: Optional[str] = None
    description: Optional[str] = None
    owner: Optional[Account] = None
    is_private: Optional[bool] = None
    has_publicly_visible_repos: Optional[bool] = None
    created_on: Optional[str] = None
    updated_on: Optional[str] = None
    links: Optional[Links] = None


# Repositories and commits

class Branch(BitbucketModel):
    name: Optional[str] = None
    type: Optional[str] = None
    merge_strategies: Optional[List[str]] = None
    default_merge_strategy: Optional[str] = None
    target: Optional[Dict[str, Any]] = None


class Repository(BitbucketModel):
    uuid: Optional[str] = None
    name: Optional[str] = None
    slug: Optional[str] = None
    full_name: Optional[str] = None
    description: Optional[str] = None
    owner: Optional[Account] = None
    is_private: Optional[bool] = None
    scm: Optional[str] = None
    size: Optional[int] = None
    language: Optional[str] = None
    has_issues: Optional[bool] = None
    has_wiki: Optional[bool] = None
    fork_policy: Optional[str] = None
    parent: Optional["Repository"] = None
    project: Optional[Project] = None
    mainbranch: Optional[Branch] = None
    created_on: Optional[str] = None
    updated_on: Optional[str] = None
    links: Optional[Links] = None


class CommitAuthor(BitbucketModel):
    raw: Optional[str] = None
    user: Optional[Account] = None


class Commit(BitbucketModel):
    hash: Optional[str] = None
    date: Optional[str] = None
    message: Optional[str] = None
    author: Optional[CommitAuthor] = None
    summary: Optional[Dict[str, Any]] = None
    parents: Optional[List["Commit"]] = None
    repository: Optional[Repository] = None
    links: Optional[Links] = None


class CommitStatus(BitbucketModel):
    """Metadata attached to a commit, like an automated build result"""
    uuid: Optional[str] = None
    key: Optional[str] = None
    refname: Optional[str] = None
    url: Optional[str] = None
    state: Optional[str] = None
    name: Optional[str] = None
    description: Optional[str] = None
    created_on: Optional[str] = None
    updated_on: Optional[str] = None
    links: Optional[Links] = None


# Pipelines

class PipelineVariable(BitbucketModel):
    uuid: Optional[str] = None
    key: str
    value: Optional[str] = None
    secured: Optional[bool] = None


class Pipeline(BitbucketModel):
    uuid: Optional[str] = None
    build_number: Optional[int] = None
    repository: Optional[Repository] = None
    creator: Optional[Account] = None
    created_on: Optional[str] = None
    completed_on: Optional[str] = None
    build_seconds_used: Optional[int] = None
    target: Optional[Dict[str, Any]] = None
    trigger: Optional[Dict[str, Any]] = None
    state: Optional[Dict[str, Any]] = None
    variables: Optional[List[PipelineVariable]] = None
    configuration_sources: Optional[List[Dict[str, Any]]] = None
    links: Optional[Links] = None


# Pull requests

class PullRequestEndpoint(BitbucketModel):
    repository: Optional[Repository] = None
    branch: Optional[Branch] = None
    commit: Optional[Commit] = None


class Participant(BitbucketModel):
    user: Optional[Account] = None
    role: Optional[str] = None
    approved: Optional[bool] = None
    state: Optional[str] = None
    participated_on: Optional[str] = None


class PullRequest(BitbucketModel):
    id: Optional[int] = None
    title: Optional[str] = None
    description: Optional[str] = None
    state: Optional[str] = None
    author: Optional[Account] = None
    source: Optional[PullRequestEndpoint] = None
    destination: Optional[PullRequestEndpoint] = None
    merge_commit: Optional[Dict[str, Any]] = None
    comment_count: Optional[int] = None
    task_count: Optional[int] = None
    close_source_branch: Optional[bool] = None
    closed_by: Optional[Account] = None
    reason: Optional[str] = None
    reviewers: List[Account] = Field(default_factory=list)
    participants: List[Participant] = Field(default_factory=list)
    created_on: Optional[str] = None
    updated_on: Optional[str] = None
    links: Optional[Links] = None


# Code search

class CodeSearchFile(BitbucketModel):
    path: Optional[str] = None
    type: Optional[str] = None
    commit: Optional[Commit] = None
    links: Optional[Links] = None


class CodeSearchResult(BitbucketModel):
    type: Optional[str] = None
    content_match_count: Optional[int] = None
    content_matches: List[Any] = Field(default_factory=list)
    path_matches: List[Any] = Field(default_factory=list)
    file: Optional[CodeSearchFile] = None


Repository.model_rebuild()
Commit.model_rebuild()
