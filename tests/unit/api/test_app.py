"""End-to-end tests for the HTTP API: health, projects and the button scenario."""

from __future__ import annotations

import pytest

BUTTON_REPLY = (
    "I've created a simple button component.\n\n"
    '<file path="src/components/Button.jsx" language="javascript">\n'
    "export default function Button({ children, onClick }) {\n"
    "  return <button onClick={onClick}>{children}</button>;\n"
    "}\n"
    "</file>\n\n"
    "Import it wherever you need a button."
)


@pytest.fixture
def client(client_factory):
    client, _ = client_factory()
    return client


def _create_project(client, name="Demo") -> str:
    response = client.post("/api/projects", json={"name": name, "description": "demo app"})
    assert response.status_code == 201
    return response.json()["project"]["id"]


def test_health(client):
    assert client.get("/api/health").json() == {"status": "ok"}


def test_create_button_component_end_to_end(client_factory):
    client, orchestrator = client_factory(BUTTON_REPLY)
    project_id = _create_project(client)
    assert orchestrator.workspaces == [(project_id, "Demo")]

    seeded = client.post(
        "/api/files/batch",
        json={
            "projectId": project_id,
            "files": [
                {
                    "path": "src/App.jsx",
                    "content": "export default function App() {}",
                    "language": "javascript",
                },
                {"path": "src/styles.css", "content": "body { margin: 0; }", "language": "css"},
            ],
        },
    )
    assert seeded.json()["count"] == 2

    response = client.post(
        "/api/chat/send",
        json={"projectId": project_id, "message": "create a button component"},
    )
    body = response.json()

    assert response.status_code == 200
    assert body["success"] is True
    assert body["message"] == (
        "I've created a simple button component.\n\nImport it wherever you need a button."
    )
    assert [f["path"] for f in body["generatedFiles"]] == ["src/components/Button.jsx"]
    assert body["thinking"] is None
    assert body["sessionId"]

    # Both seeded files reach the model as fenced snippets
    prompt = orchestrator.calls[0]["prompt"]
    assert "### src/App.jsx\n```javascript\nexport default function App() {}\n```" in prompt
    assert "### src/styles.css\n```css\nbody { margin: 0; }\n```" in prompt

    listed = client.get(f"/api/files/{project_id}").json()["files"]
    assert [f["path"] for f in listed] == [
        "src/App.jsx",
        "src/components/Button.jsx",
        "src/styles.css",
    ]
    assert "content" not in listed[0]

    read = client.get(f"/api/files/{project_id}/src/components/Button.jsx").json()["file"]
    assert read["language"] == "javascript"
    assert "<button onClick={onClick}>" in read["content"]

    search = client.post(
        "/api/files/search", json={"projectId": project_id, "query": "button onClick"}
    ).json()
    assert "src/components/Button.jsx" in [r["path"] for r in search["results"]]
    assert search["structure"] == (
        "📁 src\n  📁 components\n    📄 Button.jsx\n  📄 App.jsx\n  📄 styles.css"
    )

    # A follow-up turn sees the generated file as context
    client.post("/api/chat/send", json={"projectId": project_id, "message": "make the button blue"})
    assert "### src/components/Button.jsx" in orchestrator.calls[1]["prompt"]

    history = client.get(f"/api/chat/history/{project_id}").json()
    assert history["total"] == 4
    assert history["messages"][1]["metadata"]["files"][0]["path"] == "src/components/Button.jsx"


def test_shutdown_closes_orchestrator(client_factory, orchestrator_factory):
    class ClosingOrchestrator(orchestrator_factory):
        closed = False

        def close(self):
            self.closed = True

    client, orchestrator = client_factory(orchestrator=ClosingOrchestrator())
    with client:
        assert client.get("/api/health").status_code == 200
        assert orchestrator.closed is False
    assert orchestrator.closed is True


# ------------------------------------------------------------------
# Projects
# ------------------------------------------------------------------


def test_project_crud(client):
    project_id = _create_project(client, "Shop")

    project = client.get(f"/api/projects/{project_id}").json()["project"]
    assert project["name"] == "Shop"
    assert project["settings"] == {}
    assert project["file_count"] == 0

    updated = client.put(
        f"/api/projects/{project_id}", json={"description": "storefront", "settings": {"a": 1}}
    ).json()["project"]
    assert updated["description"] == "storefront"
    assert updated["settings"] == {"a": 1}

    assert [p["id"] for p in client.get("/api/projects").json()["projects"]] == [project_id]

    deleted = client.delete(f"/api/projects/{project_id}")
    assert deleted.json() == {"success": True, "message": "Project deleted successfully"}
    assert client.get(f"/api/projects/{project_id}").status_code == 404


def test_project_file_count(client):
    project_id = _create_project(client)
    client.post(
        "/api/files/update", json={"projectId": project_id, "path": "a.js", "content": "a"}
    )
    assert client.get(f"/api/projects/{project_id}").json()["project"]["file_count"] == 1


def test_create_project_requires_name(client):
    response = client.post("/api/projects", json={"description": "nameless"})
    assert response.status_code == 400
    assert response.json()["error"] == "Validation error"


def test_update_project_without_fields(client):
    project_id = _create_project(client)
    response = client.put(f"/api/projects/{project_id}", json={})
    assert response.status_code == 400
    assert response.json() == {"error": "No fields to update", "status": 400}


def test_unknown_project(client):
    response = client.get("/api/projects/does-not-exist")
    assert response.status_code == 404
    assert response.json()["status"] == 404
    assert "does-not-exist" in response.json()["error"]
