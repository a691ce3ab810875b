"""
Workspace, project, repository, pipeline and code search tests.
"""
import httpx
import pytest

from bitbucket_cloud.exceptions.bitbucket_exceptions import BitbucketRequestError
from tests.utils.data_factory import BitbucketDataFactory


@pytest.mark.asyncio
class TestWorkspaces:

    async def test_current_user(self, bitbucket_api, data_source):
        bitbucket_api.add_json("GET", "/user", BitbucketDataFactory.account(uuid="{me}", account_status="active"))

        user = await data_source.get_current_user()

        assert user.uuid == "{me}"
        assert user.account_status == "active"

    async def test_list_workspaces_carries_permission(self, bitbucket_api, data_source):
        owned = BitbucketDataFactory.workspace(slug="acme")
        joined = BitbucketDataFactory.workspace(slug="partner")
        bitbucket_api.add_json("GET", "/user/permissions/workspaces", BitbucketDataFactory.page([
            {"type": "workspace_membership", "permission": "owner", "workspace": owned},
            {"type": "workspace_membership", "permission": "member", "workspace": joined},
        ]))

        workspaces = await data_source.list_workspaces()

        assert [(w.slug, w.permission) for w in workspaces] == [("acme", "owner"), ("partner", "member")]
        assert workspaces[0].uuid == owned["uuid"]
        # Only fields the API sent are carried over
        assert workspaces[0].model_dump(exclude_unset=True) == {**owned, "permission": "owner"}
        assert "updated_on" not in workspaces[0].model_dump(exclude_unset=True)

    async def test_get_workspace_by_uuid(self, bitbucket_api, data_source):
        workspace = BitbucketDataFactory.workspace(slug="acme", uuid="{w-1}")
        bitbucket_api.add_json("GET", "/workspaces/{w-1}", workspace)

        result = await data_source.get_workspace("{w-1}")

        assert result.slug == "acme"
        assert bitbucket_api.calls("GET")[0].url.path == "/2.0/workspaces/{w-1}"

    async def test_get_project(self, bitbucket_api, data_source):
        bitbucket_api.add_json("GET", "/workspaces/acme/projects/PROJ", {"key": "PROJ", "name": "Platform"})

        project = await data_source.get_project("acme", "PROJ")

        assert project.key == "PROJ"
        assert project.name == "Platform"

    async def test_unauthorized_raises_with_context(self, bitbucket_api, data_source):
        bitbucket_api.add_status("GET", "/workspaces/acme/projects/NOPE", 401, text="Unauthorized")

        with pytest.raises(BitbucketRequestError) as exc_info:
            await data_source.get_project("acme", "NOPE")

        error = exc_info.value
        assert error.status_code == 401
        assert error.method == "GET"
        assert error.url.endswith("/workspaces/acme/projects/NOPE")
        assert not error.is_not_found

    async def test_non_json_success_body_raises_request_error(self, bitbucket_api, data_source):
        bitbucket_api.add("GET", "/user", lambda request: httpx.Response(
            200, text="<html>proxy login</html>", headers={"Content-Type": "text/html"}
        ))

        with pytest.raises(BitbucketRequestError) as exc_info:
            await data_source.get_current_user()

        error = exc_info.value
        assert error.status_code == 200
        assert error.method == "GET"
        assert error.body == "<html>proxy login</html>"
        assert "text/html" in error.message
        assert isinstance(error.__cause__, ValueError)


@pytest.mark.asyncio
class TestRepositories:

    async def test_repositories_are_filtered_by_project(self, bitbucket_api, data_source):
        repositories = [BitbucketDataFactory.repository(slug=f"svc-{i}", project_key="PROJ") for i in range(3)]
        bitbucket_api.add_json("GET", "/repositories/acme", BitbucketDataFactory.page(repositories))

        result = await data_source.get_repositories_by_project("acme", "PROJ")

        assert [r.slug for r in result] == ["svc-0", "svc-1", "svc-2"]
        assert result[0].project.key == "PROJ"
        assert bitbucket_api.calls("GET")[0].url.params["q"] == 'project.key="PROJ"'

    async def test_repositories_follow_every_page(self, bitbucket_api, data_source):
        pages = {
            None: BitbucketDataFactory.page([BitbucketDataFactory.repository(slug="a")], page=1, has_next=True),
            "2": BitbucketDataFactory.page([BitbucketDataFactory.repository(slug="b")], page=2, has_next=True),
            "3": BitbucketDataFactory.page([BitbucketDataFactory.repository(slug="c")], page=3),
        }
        bitbucket_api.add("GET", "/repositories/acme",
                          lambda request: httpx.Response(200, json=pages[request.url.params.get("page")]))

        result = await data_source.get_repositories_by_project("acme", "PROJ")

        assert [r.slug for r in result] == ["a", "b", "c"]
        # The project filter is kept on every page
        assert {request.url.params["q"] for request in bitbucket_api.calls("GET")} == {'project.key="PROJ"'}

    async def test_repository_with_fork_parent(self, bitbucket_api, data_source):
        parent = BitbucketDataFactory.repository(slug="upstream")
        bitbucket_api.add_json("GET", "/repositories/acme/fork",
                               BitbucketDataFactory.repository(slug="fork", parent=parent))

        repository = await data_source.get_repository("acme", "fork")

        assert repository.parent.slug == "upstream"
        assert repository.mainbranch.name == "main"


@pytest.mark.asyncio
class TestPipelines:

    async def test_pipelines_are_newest_first(self, bitbucket_api, data_source):
        bitbucket_api.add_json("GET", "/repositories/acme/api/pipelines/", BitbucketDataFactory.page([
            {"uuid": "{p-2}", "build_number": 2},
            {"uuid": "{p-1}", "build_number": 1},
        ], has_next=True))

        pipelines = await data_source.get_pipelines("acme", "api")

        assert [p.build_number for p in pipelines] == [2, 1]
        requests = bitbucket_api.calls("GET")
        assert len(requests) == 1
        assert requests[0].url.params["sort"] == "-created_on"

    async def test_get_pipeline(self, bitbucket_api, data_source):
        bitbucket_api.add_json("GET", "/repositories/acme/api/pipelines/{p-1}",
                               {"uuid": "{p-1}", "state": {"name": "COMPLETED"}})

        pipeline = await data_source.get_pipeline("acme", "api", "{p-1}")

        assert pipeline.state == {"name": "COMPLETED"}

    async def test_commit_statuses(self, bitbucket_api, data_source):
        bitbucket_api.add_json("GET", "/repositories/acme/api/commit/abc123/statuses", BitbucketDataFactory.page([
            {"key": "build", "state": "SUCCESSFUL"},
            {"key": "lint", "state": "FAILED"},
        ]))

        statuses = await data_source.get_commit_statuses("acme", "api", "abc123")

        assert [(s.key, s.state) for s in statuses] == [("build", "SUCCESSFUL"), ("lint", "FAILED")]


@pytest.mark.asyncio
class TestCodeSearch:

    async def test_search_expands_repository(self, bitbucket_api, data_source):
        repository = BitbucketDataFactory.repository(slug="api")
        bitbucket_api.add_json("GET", "/workspaces/acme/search/code", BitbucketDataFactory.page([
            {
                "type": "code_search_result",
                "content_match_count": 1,
                "file": {"path": "src/app.py", "type": "commit_file", "commit": {"hash": "abc", "repository": repository}},
            },
        ]))

        results = await data_source.code_search("acme", "def main")

        assert results[0].file.path == "src/app.py"
        assert results[0].file.commit.repository.slug == "api"
        params = bitbucket_api.calls("GET")[0].url.params
        assert params["search_query"] == "def main"
        assert params["fields"] == "+values.file.commit.repository"

    async def test_iter_code_search_is_lazy(self, bitbucket_api, data_source):
        bitbucket_api.add_json("GET", "/workspaces/acme/search/code",
                               BitbucketDataFactory.page([{"content_match_count": 2}], page=1, has_next=True))

        async for page in data_source.iter_code_search("acme", "TODO"):
            assert page.values[0].content_match_count == 2
            break

        assert len(bitbucket_api.calls("GET")) == 1
