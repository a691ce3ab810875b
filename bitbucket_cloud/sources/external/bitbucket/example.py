# ruff: noqa

"""
Bitbucket API Usage Examples

Demonstrates the Bitbucket DataSource against Bitbucket Cloud (v2.0):
- Authentication from environment settings (Basic Auth or Bearer token)
- Fetching the current user and workspaces
- Listing the repositories of a project (all pages)
- Reading a file and the effective default reviewers

Prerequisites:
1. Log in to Bitbucket.
2. Go to Personal Settings -> App Passwords.
3. Create an App Password with permissions (Read: Account, Workspace, Projects, Repositories).
4. Set BITBUCKET_USERNAME and BITBUCKET_PASSWORD (or BITBUCKET_AUTH_TYPE=BEARER and BITBUCKET_TOKEN).
5. Optionally set BITBUCKET_PROJECT_KEY to list the repositories of one project.

Run with: python -m bitbucket_cloud.sources.external.bitbucket.example
"""

import asyncio
import os

from bitbucket_cloud.exceptions.bitbucket_exceptions import (
    BitbucketConfigurationError,
    BitbucketRequestError,
)
from bitbucket_cloud.sources.client.bitbucket.bitbucket import BitbucketClient
from bitbucket_cloud.sources.external.bitbucket.bitbucket import BitbucketDataSource
from bitbucket_cloud.utils.logger import create_logger

PROJECT_KEY = os.getenv("BITBUCKET_PROJECT_KEY")

logger = create_logger("bitbucket_example")


def print_section(title: str):
    print(f"\n{'-'*80}")
    print(f"| {title}")
    print(f"{'-'*80}")


async def main() -> None:
    print_section("Initializing Bitbucket Client")
    try:
        client = BitbucketClient.build_from_settings(logger)
    except BitbucketConfigurationError as e:
        print(f"⚠️  {e.message}")
        return

    async with client:
        data_source = BitbucketDataSource(client, logger=logger)

        print_section("Current User")
        user = await data_source.get_current_user()
        print(f"Logged in as {user.display_name} ({user.uuid})")

        print_section("Workspaces")
        workspaces = await data_source.list_workspaces()
        for workspace in workspaces:
            print(f"  {workspace.slug}: {workspace.permission}")

        if not workspaces or not PROJECT_KEY:
            return

        workspace_slug = workspaces[0].slug
        print_section(f"Repositories in {workspace_slug}/{PROJECT_KEY}")
        try:
            repositories = await data_source.get_repositories_by_project(workspace_slug, PROJECT_KEY)
        except BitbucketRequestError as e:
            print(f"❌ {e.message}: {e.body}")
            return
        print(f"Found {len(repositories)} repositories")

        for repository in repositories[:3]:
            print_section(f"Details for {repository.full_name}")
            main_branch = repository.mainbranch.name if repository.mainbranch else "main"
            readme = await data_source.get_file(workspace_slug, repository.slug, main_branch, "README.md")
            print(f"README.md: {'missing' if readme is None else f'{len(readme)} characters'}")

            reviewers = await data_source.get_effective_default_reviewers(workspace_slug, repository.slug)
            for reviewer in reviewers:
                print(f"  reviewer {reviewer.display_name} ({reviewer.reviewer_type})")


if __name__ == "__main__":
    asyncio.run(main())
