"""
Bitbucket Cloud API 2.0 DataSource
===================================

Typed async wrapper around the Bitbucket Cloud REST API.

API Documentation: https://developer.atlassian.com/cloud/bitbucket/rest/
"""

import logging
import posixpath
import warnings
from typing import Any, AsyncIterator, Dict, List, Optional, Tuple

import httpx  # type: ignore

from bitbucket_cloud.config.constants.http_status_code import HttpStatusCode
from bitbucket_cloud.exceptions.bitbucket_exceptions import BitbucketRequestError
from bitbucket_cloud.models.bitbucket import (
    Account,
    CodeSearchResult,
    CommitStatus,
    DefaultReviewerWithType,
    EffectiveDefaultReviewer,
    PaginatedResponse,
    Pipeline,
    PipelineVariable,
    Project,
    PullRequest,
    Repository,
    User,
    Workspace,
    WorkspaceMembership,
    WorkspaceWithPermission,
)
from bitbucket_cloud.sources.client.bitbucket.bitbucket import BitbucketClient
from bitbucket_cloud.sources.client.http.http_request import HTTPRequest
from bitbucket_cloud.sources.client.http.http_response import HTTPResponse
from bitbucket_cloud.sources.external.bitbucket.pagination import (
    PageFetcher,
    collect_values,
    iterate_pages,
)

UNKNOWN_COMMIT_HASH = "<unknown>"
CODE_SEARCH_FIELDS = "+values.file.commit.repository"
MAX_ERROR_BODY_LENGTH = 500


class BitbucketDataSource:
    """Bitbucket Cloud API DataSource.

    Every method maps to one or more HTTP requests and returns typed models.
    Non-2xx responses and transport failures raise BitbucketRequestError.

    Example:
        >>> from bitbucket_cloud.sources.client.bitbucket.bitbucket import BitbucketClient, BitbucketBasicAuthConfig
        >>> from bitbucket_cloud.sources.external.bitbucket.bitbucket import BitbucketDataSource
        >>>
        >>> client = BitbucketClient.build_with_config(
        ...     BitbucketBasicAuthConfig(username="me@example.com", password="app-password")
        ... )
        >>> datasource = BitbucketDataSource(client)
        >>> user = await datasource.get_current_user()
        >>> print(user.display_name)

    Workspace identifiers are a slug or a UUID surrounded by curly braces.
    User identifiers are a username or an account UUID surrounded by curly braces.
    """

    def __init__(self, client: BitbucketClient, logger: Optional[logging.Logger] = None) -> None:
        """Initialize Bitbucket DataSource.

        Args:
            client: BitbucketClient instance (Basic Auth or Bearer)
            logger: Optional logger instance
        """
        self._bitbucket_client = client
        self.client = client.get_client()
        self.base_url = client.get_base_url()
        self.logger = logger or logging.getLogger(__name__)

    def get_client(self) -> BitbucketClient:
        """Get the underlying BitbucketClient."""
        return self._bitbucket_client

    async def _execute_request(
        self,
        method: str,
        path: str,
        path_params: Optional[Dict[str, str]] = None,
        query_params: Optional[Dict[str, str]] = None,
        body: Optional[Dict[str, Any]] = None,
        form: Optional[List[Tuple[str, str]]] = None,
    ) -> HTTPResponse:
        """Execute a request against the API and fail on non-2xx statuses.

        Args:
            method: HTTP method (GET, POST, PUT, DELETE)
            path: Path template relative to the base URL (e.g. "/repositories/{workspace}")
            path_params: Values substituted into the path template
            query_params: Query parameters
            body: JSON body
            form: Multipart form fields as (name, value) pairs

        Returns:
            HTTPResponse of a successful request

        Raises:
            BitbucketRequestError: On network errors or non-2xx statuses
        """
        request = HTTPRequest(
            method=method,
            url=self.base_url + path,
            path_params=path_params or {},
            query_params=query_params or {},
            body=body,
            form=form,
        )
        url = request.formatted_url()

        try:
            response = await self.client.execute(request)
        except httpx.HTTPError as e:
            self.logger.error(f"{method} {url} failed: {type(e).__name__}: {e}")
            raise BitbucketRequestError(
                f"Request failed: {type(e).__name__}: {e}",
                method=method,
                url=url,
            ) from e

        if not response.is_success:
            body_text = response.text()[:MAX_ERROR_BODY_LENGTH]
            if response.status != HttpStatusCode.NOT_FOUND.value:
                self.logger.error(f"{method} {url} returned HTTP {response.status}: {body_text}")
            raise BitbucketRequestError(
                f"Request failed with status {response.status}",
                method=method,
                url=url,
                status_code=response.status,
                body=body_text,
            )

        return response

    async def _get_json(
        self,
        path: str,
        path_params: Optional[Dict[str, str]] = None,
        query_params: Optional[Dict[str, str]] = None,
    ) -> Any:
        response = await self._execute_request("GET", path, path_params, query_params)
        return self._decode_json("GET", response)

    def _decode_json(self, method: str, response: HTTPResponse) -> Any:
        """Decode a successful response body, failing with BitbucketRequestError when it is not JSON."""
        try:
            return response.json()
        except ValueError as e:
            body_text = response.text()[:MAX_ERROR_BODY_LENGTH]
            if response.is_json:
                reason = "malformed JSON body"
            else:
                reason = f"non-JSON body ({response.headers.get('Content-Type', 'no content type')})"
            self.logger.error(f"{method} {response.url} returned a {reason}: {body_text}")
            raise BitbucketRequestError(
                f"Response has a {reason}",
                method=method,
                url=response.url,
                status_code=response.status,
                body=body_text,
            ) from e

    def _page_fetcher(
        self,
        path: str,
        path_params: Dict[str, str],
        query_params: Optional[Dict[str, str]] = None,
    ) -> PageFetcher:
        """Build a fetcher for iterate_pages; the first page is requested without `page`."""
        async def fetch_page(page: Optional[int]) -> Dict[str, Any]:
            params = dict(query_params or {})
            if page:
                params["page"] = str(page)
            return await self._get_json(path, path_params, params)

        return fetch_page

    # ========================================================================
    # User
    # ========================================================================

    async def get_current_user(self) -> User:
        """Returns the currently logged in user."""
        data = await self._get_json("/user")
        return User.model_validate(data)

    # ========================================================================
    # Workspaces
    # ========================================================================

    async def list_workspaces(self) -> List[WorkspaceWithPermission]:
        """Returns every workspace the current user is a member of, with their permission in it."""
        memberships = await collect_values(
            self._page_fetcher("/user/permissions/workspaces", {}),
            WorkspaceMembership,
        )
        return [
            WorkspaceWithPermission.model_validate(
                {**membership.workspace.model_dump(exclude_unset=True), "permission": membership.permission}
            )
            for membership in memberships
        ]

    async def get_workspace(self, workspace: str) -> Workspace:
        """Returns the requested workspace.

        Args:
            workspace: Workspace slug or UUID
        """
        data = await self._get_json("/workspaces/{workspace}", {"workspace": workspace})
        return Workspace.model_validate(data)

    # ========================================================================
    # Projects
    # ========================================================================

    async def get_project(self, workspace: str, project_key: str) -> Project:
        """Returns the requested project.

        Args:
            workspace: Workspace slug or UUID
            project_key: The project's key
        """
        data = await self._get_json(
            "/workspaces/{workspace}/projects/{project_key}",
            {"workspace": workspace, "project_key": project_key},
        )
        return Project.model_validate(data)

    # ========================================================================
    # Repositories
    # ========================================================================

    def iter_repositories_by_project(
        self,
        workspace: str,
        project_key: str,
    ) -> AsyncIterator[PaginatedResponse[Repository]]:
        """Lazily yields pages of the repositories belonging to a project."""
        return iterate_pages(
            self._page_fetcher(
                "/repositories/{workspace}",
                {"workspace": workspace},
                {"q": f'project.key="{project_key}"'},
            ),
            Repository,
        )

    async def get_repositories_by_project(self, workspace: str, project_key: str) -> List[Repository]:
        """Returns every repository of a project, following pagination.

        Args:
            workspace: Workspace slug or UUID
            project_key: The project's key, used as a server-side filter
        """
        values: List[Repository] = []
        async for page in self.iter_repositories_by_project(workspace, project_key):
            values.extend(page.values)
        return values

    async def get_repository(self, workspace: str, repo_slug: str) -> Repository:
        data = await self._get_json(
            "/repositories/{workspace}/{repo_slug}",
            {"workspace": workspace, "repo_slug": repo_slug},
        )
        return Repository.model_validate(data)

    # ========================================================================
    # Default reviewers
    # ========================================================================

    async def get_default_reviewers(self, workspace: str, repo_slug: str) -> List[Account]:
        """Returns the repository-level default reviewers.

        Deprecated: reviewers inherited from the project are not included.
        Use get_effective_default_reviewers instead.
        """
        warnings.warn(
            "get_default_reviewers only returns repository-level reviewers; "
            "use get_effective_default_reviewers instead",
            DeprecationWarning,
            stacklevel=2,
        )
        return await collect_values(
            self._page_fetcher(
                "/repositories/{workspace}/{repo_slug}/default-reviewers",
                {"workspace": workspace, "repo_slug": repo_slug},
            ),
            Account,
        )

    async def add_default_reviewer(self, workspace: str, repo_slug: str, target_user: str) -> Account:
        """Adds the user to the repository's default reviewers.

        Idempotent on the server side: adding a user a second time has no effect.

        Args:
            workspace: Workspace slug or UUID
            repo_slug: Repository slug
            target_user: Username or account UUID in curly braces
        """
        response = await self._execute_request(
            "PUT",
            "/repositories/{workspace}/{repo_slug}/default-reviewers/{target_username}",
            {"workspace": workspace, "repo_slug": repo_slug, "target_username": target_user},
        )
        return Account.model_validate(self._decode_json("PUT", response))

    async def remove_default_reviewer(self, workspace: str, repo_slug: str, target_user: str) -> None:
        await self._execute_request(
            "DELETE",
            "/repositories/{workspace}/{repo_slug}/default-reviewers/{target_username}",
            {"workspace": workspace, "repo_slug": repo_slug, "target_username": target_user},
        )

    def iter_effective_default_reviewers(
        self,
        workspace: str,
        repo_slug: str,
    ) -> AsyncIterator[PaginatedResponse[EffectiveDefaultReviewer]]:
        """Lazily yields raw pages of effective default reviewers."""
        return iterate_pages(
            self._page_fetcher(
                "/repositories/{workspace}/{repo_slug}/effective-default-reviewers",
                {"workspace": workspace, "repo_slug": repo_slug},
            ),
            EffectiveDefaultReviewer,
        )

    async def get_effective_default_reviewers(self, workspace: str, repo_slug: str) -> List[DefaultReviewerWithType]:
        """Returns repository-level and project-inherited default reviewers.

        Each reviewer carries `reviewer_type` telling where it is defined.
        """
        reviewers: List[DefaultReviewerWithType] = []
        async for page in self.iter_effective_default_reviewers(workspace, repo_slug):
            for item in page.values:
                reviewers.append(
                    DefaultReviewerWithType.model_validate(
                        {**item.user.model_dump(exclude_unset=True), "reviewer_type": item.reviewer_type}
                    )
                )
        return reviewers

    # ========================================================================
    # Pipelines
    # ========================================================================

    async def get_pipelines(self, workspace: str, repo_slug: str) -> List[Pipeline]:
        """Returns the most recently created pipelines (first page only)."""
        data = await self._get_json(
            "/repositories/{workspace}/{repo_slug}/pipelines/",
            {"workspace": workspace, "repo_slug": repo_slug},
            {"sort": "-created_on"},
        )
        return PaginatedResponse[Pipeline].model_validate(data).values

    async def get_pipeline(self, workspace: str, repo_slug: str, pipeline_uuid: str) -> Pipeline:
        data = await self._get_json(
            "/repositories/{workspace}/{repo_slug}/pipelines/{pipeline_uuid}",
            {"workspace": workspace, "repo_slug": repo_slug, "pipeline_uuid": pipeline_uuid},
        )
        return Pipeline.model_validate(data)

    async def get_commit_statuses(self, workspace: str, repo_slug: str, commit: str) -> List[CommitStatus]:
        return await collect_values(
            self._page_fetcher(
                "/repositories/{workspace}/{repo_slug}/commit/{commit}/statuses",
                {"workspace": workspace, "repo_slug": repo_slug, "commit": commit},
            ),
            CommitStatus,
        )

    # ========================================================================
    # Pipeline variables
    # ========================================================================

    async def get_repo_variables(self, workspace: str, repo_slug: str) -> List[PipelineVariable]:
        """Returns repository level pipeline variables."""
        return await collect_values(
            self._page_fetcher(
                "/repositories/{workspace}/{repo_slug}/pipelines_config/variables",
                {"workspace": workspace, "repo_slug": repo_slug},
            ),
            PipelineVariable,
        )

    async def create_repo_variable(
        self,
        workspace: str,
        repo_slug: str,
        key: str,
        value: str,
        secured: bool = True,
    ) -> PipelineVariable:
        response = await self._execute_request(
            "POST",
            "/repositories/{workspace}/{repo_slug}/pipelines_config/variables",
            {"workspace": workspace, "repo_slug": repo_slug},
            body={
                "type": "pipeline_variable",
                "key": key,
                "value": value,
                "secured": secured,
            },
        )
        return PipelineVariable.model_validate(self._decode_json("POST", response))

    async def update_repo_variable(
        self,
        workspace: str,
        repo_slug: str,
        variable_uuid: str,
        key: str,
        value: str,
        secured: bool = True,
    ) -> PipelineVariable:
        response = await self._execute_request(
            "PUT",
            "/repositories/{workspace}/{repo_slug}/pipelines_config/variables/{variable_uuid}",
            {"workspace": workspace, "repo_slug": repo_slug, "variable_uuid": variable_uuid},
            body={
                "type": "pipeline_variable",
                "uuid": variable_uuid,
                "key": key,
                "value": value,
                "secured": secured,
            },
        )
        return PipelineVariable.model_validate(self._decode_json("PUT", response))

    async def set_repo_variable(
        self,
        workspace: str,
        repo_slug: str,
        key: str,
        value: str,
        secured: bool = True,
    ) -> PipelineVariable:
        """Creates the variable, or updates it when a variable with the same key exists.

        Not atomic: the variables are listed first, then exactly one create or
        update is issued. Concurrent callers setting the same key may race.
        """
        existing = await self._find_repo_variable(workspace, repo_slug, key)
        if existing is None:
            return await self.create_repo_variable(workspace, repo_slug, key, value, secured)
        return await self.update_repo_variable(workspace, repo_slug, existing.uuid, key, value, secured)

    async def delete_repo_variable(self, workspace: str, repo_slug: str, key: str) -> Optional[PipelineVariable]:
        """Deletes the variable with the given key.

        Returns:
            The deleted variable, or None when no variable has that key
            (no DELETE request is issued in that case)
        """
        existing = await self._find_repo_variable(workspace, repo_slug, key)
        if existing is None:
            self.logger.info(f"No pipeline variable {key} in {workspace}/{repo_slug}, nothing to delete")
            return None

        await self._execute_request(
            "DELETE",
            "/repositories/{workspace}/{repo_slug}/pipelines_config/variables/{variable_uuid}",
            {"workspace": workspace, "repo_slug": repo_slug, "variable_uuid": existing.uuid},
        )
        return existing

    async def _find_repo_variable(self, workspace: str, repo_slug: str, key: str) -> Optional[PipelineVariable]:
        variables = await self.get_repo_variables(workspace, repo_slug)
        return next((variable for variable in variables if variable.key == key), None)

    # ========================================================================
    # Pull requests
    # ========================================================================

    async def create_pull_request(
        self,
        workspace: str,
        repo_slug: str,
        title: str,
        source_branch: str,
        destination_branch: Optional[str] = None,
        description: Optional[str] = None,
    ) -> PullRequest:
        """Opens a pull request with the effective default reviewers.

        The current user is removed from the reviewers since the author of a
        pull request cannot review it. The source branch is closed after merge.

        Args:
            workspace: Workspace slug or UUID
            repo_slug: Repository slug
            title: Pull request title
            source_branch: Branch to merge from
            destination_branch: Branch to merge into; the repository main branch when omitted
            description: Optional pull request description
        """
        current_user = await self.get_current_user()
        reviewers = [
            reviewer
            for reviewer in await self.get_effective_default_reviewers(workspace, repo_slug)
            if reviewer.uuid != current_user.uuid
        ]

        body: Dict[str, Any] = {
            "title": title,
            "source": {"branch": {"name": source_branch}},
            "reviewers": [{"uuid": reviewer.uuid} for reviewer in reviewers],
            "close_source_branch": True,
        }
        if destination_branch:
            body["destination"] = {"branch": {"name": destination_branch}}
        if description is not None:
            body["description"] = description

        response = await self._execute_request(
            "POST",
            "/repositories/{workspace}/{repo_slug}/pullrequests",
            {"workspace": workspace, "repo_slug": repo_slug},
            body=body,
        )
        return PullRequest.model_validate(self._decode_json("POST", response))

    # ========================================================================
    # Files
    # ========================================================================

    async def get_file(
        self,
        workspace: str,
        repo_slug: str,
        commit_or_ref: str,
        file_path: str,
    ) -> Optional[str]:
        """Returns the raw contents of a file, or None when it does not exist.

        The path is resolved against the repository root, so `..` cannot escape it.
        """
        absolute_path = normalize_repo_path(file_path)
        try:
            response = await self._execute_request(
                "GET",
                "/repositories/{workspace}/{repo_slug}/src/{commit_or_ref}{file_path}",
                {
                    "workspace": workspace,
                    "repo_slug": repo_slug,
                    "commit_or_ref": commit_or_ref,
                    "file_path": absolute_path,
                },
            )
        except BitbucketRequestError as e:
            if e.is_not_found:
                self.logger.info(f"File {absolute_path} not found at {commit_or_ref} in {workspace}/{repo_slug}")
                return None
            raise
        return response.text()

    async def commit_file(
        self,
        workspace: str,
        repo_slug: str,
        file_path: str,
        contents: str,
        message: Optional[str] = "Posted a file via API",
        author: Optional[str] = None,
        branch: Optional[str] = None,
    ) -> str:
        """Commits a file, creating or replacing it.

        Args:
            workspace: Workspace slug or UUID
            repo_slug: Repository slug
            file_path: A file path in the repository
            contents: New file contents
            message: The commit message
            author: Formatted as `Full Name <email>`; the current user when omitted
            branch: Branch to commit on; the main branch when omitted

        Returns:
            Full commit hash, or "<unknown>" when the response has no usable Location header
        """
        form = [(file_path, contents)]
        return await self._post_src(workspace, repo_slug, form, message, author, branch)

    async def remove_file(
        self,
        workspace: str,
        repo_slug: str,
        file_path: str,
        message: Optional[str] = "Removed a file via API",
        author: Optional[str] = None,
        branch: Optional[str] = None,
    ) -> str:
        """Commits the removal of a file. Same arguments and result as commit_file."""
        form = [("files", file_path)]
        return await self._post_src(workspace, repo_slug, form, message, author, branch)

    async def _post_src(
        self,
        workspace: str,
        repo_slug: str,
        form: List[Tuple[str, str]],
        message: Optional[str],
        author: Optional[str],
        branch: Optional[str],
    ) -> str:
        # Metadata parts are appended; a file named "message" or "branch" keeps its own part
        if message:
            form.append(("message", message))
        if author:
            form.append(("author", author))
        if branch:
            form.append(("branch", branch))

        response = await self._execute_request(
            "POST",
            "/repositories/{workspace}/{repo_slug}/src",
            {"workspace": workspace, "repo_slug": repo_slug},
            form=form,
        )
        return extract_commit_hash(response.headers.get("Location"))

    # ========================================================================
    # Code search
    # ========================================================================

    def iter_code_search(self, workspace: str, query: str) -> AsyncIterator[PaginatedResponse[CodeSearchResult]]:
        """Lazily yields pages of code search results."""
        return iterate_pages(
            self._page_fetcher(
                "/workspaces/{workspace}/search/code",
                {"workspace": workspace},
                {"search_query": query, "fields": CODE_SEARCH_FIELDS},
            ),
            CodeSearchResult,
        )

    async def code_search(self, workspace: str, query: str) -> List[CodeSearchResult]:
        """Searches code across the workspace, including the repository of every match."""
        results: List[CodeSearchResult] = []
        async for page in self.iter_code_search(workspace, query):
            results.extend(page.values)
        return results


def normalize_repo_path(file_path: str) -> str:
    """Resolve a path against the repository root: '../a//b/./c' -> '/a/b/c'."""
    normalized = posixpath.normpath(posixpath.join("/", file_path))
    # normpath keeps a leading '//' (POSIX), the repository root is a single '/'
    return "/" + normalized.lstrip("/")


def extract_commit_hash(location: Optional[str]) -> str:
    """Take the commit hash from a `.../commit/<hash>` Location header."""
    if not location:
        return UNKNOWN_COMMIT_HASH
    return location.rstrip().split("/")[-1] or UNKNOWN_COMMIT_HASH
