"""Workflow API tests

Test strategy:
- FastAPI TestClient with the database session overridden by an in-memory SQLite
- Covers create / list / get / update / delete, import / export, validate and publish
"""

import json

from approvalflow.config import settings


def create_workflow(client, name="Crédito"):
    response = client.post("/api/workflows", json={"name": name})
    assert response.status_code == 201
    return response.json()


def publishable_graph(start_id):
    return {
        "nodes": [
            {"id": start_id, "type": "Start", "title": "Inicio"},
            {
                "id": "form",
                "type": "Form",
                "title": "Solicitud",
                "roles": ["Solicitante"],
                "config": {"formId": "f-1"},
            },
            {"id": "end", "type": "End", "title": "Fin"},
        ],
        "edges": [
            {"id": "e1", "from": start_id, "to": "form"},
            {"id": "e2", "from": "form", "to": "end"},
        ],
    }


class TestCrud:
    def test_create_has_start_node(self, client):
        data = create_workflow(client)

        assert data["id"].startswith("wf_")
        assert data["metadata"]["name"] == "Crédito"
        assert data["status"] == "draft"
        assert [node["type"] for node in data["nodes"]] == ["Start"]
        assert data["edges"] == []

    def test_create_default_name(self, client):
        response = client.post("/api/workflows", json={})

        assert response.json()["metadata"]["name"] == "Nuevo Flujo de Trabajo"

    def test_list_and_get(self, client):
        created = create_workflow(client)

        listed = client.get("/api/workflows").json()
        fetched = client.get(f"/api/workflows/{created['id']}")

        assert [workflow["id"] for workflow in listed] == [created["id"]]
        assert fetched.status_code == 200
        assert fetched.json()["nodes"] == created["nodes"]

    def test_get_missing(self, client):
        response = client.get("/api/workflows/wf_missing")

        assert response.status_code == 404

    def test_update_replaces_graph(self, client):
        created = create_workflow(client)
        start_id = created["nodes"][0]["id"]

        response = client.put(
            f"/api/workflows/{created['id']}",
            json={
                **publishable_graph(start_id),
                "metadata": {"name": "Crédito v2"},
                "zoom": 1.5,
                "pan": {"x": -40, "y": 10},
            },
        )

        assert response.status_code == 200
        data = response.json()
        assert [node["id"] for node in data["nodes"]] == [start_id, "form", "end"]
        assert [(edge["from"], edge["to"]) for edge in data["edges"]] == [
            (start_id, "form"),
            ("form", "end"),
        ]
        assert data["metadata"]["name"] == "Crédito v2"
        assert data["zoom"] == 1.5
        assert data["pan"] == {"x": -40, "y": 10}
        assert client.get(f"/api/workflows/{created['id']}").json()["metadata"]["name"] == "Crédito v2"

    def test_update_with_dangling_edge(self, client):
        created = create_workflow(client)

        response = client.put(
            f"/api/workflows/{created['id']}",
            json={"nodes": [], "edges": [{"id": "e", "from": "a", "to": "b"}]},
        )

        assert response.status_code == 400
        assert response.json()["detail"] == "edge e references a missing node: a"
        assert len(client.get(f"/api/workflows/{created['id']}").json()["nodes"]) == 1

    def test_update_with_invalid_flag(self, client):
        created = create_workflow(client)

        response = client.put(
            f"/api/workflows/{created['id']}",
            json={
                "nodes": created["nodes"],
                "edges": [],
                "flags": [{"id": "f", "name": "Cartera", "options": []}],
            },
        )

        assert response.status_code == 400
        assert response.json()["detail"] == "El flag debe tener al menos una opción"

    def test_update_missing(self, client):
        response = client.put("/api/workflows/wf_missing", json={"nodes": [], "edges": []})

        assert response.status_code == 404

    def test_delete(self, client):
        created = create_workflow(client)

        first = client.delete(f"/api/workflows/{created['id']}")
        second = client.delete(f"/api/workflows/{created['id']}")

        assert first.status_code == 204
        assert second.status_code == 404
        assert client.get(f"/api/workflows/{created['id']}").status_code == 404


class TestImportExport:
    def test_export_then_import(self, client):
        created = create_workflow(client)

        exported = client.get(f"/api/workflows/{created['id']}/export")

        assert exported.status_code == 200
        assert exported.headers["content-type"].startswith("application/json")
        assert "attachment" in exported.headers["content-disposition"]
        payload = exported.json()
        assert payload["metadata"]["version"] == "1.0"

        imported = client.post(
            "/api/workflows/import", json={"content": exported.text, "name": "Copia"}
        )

        assert imported.status_code == 201
        data = imported.json()
        assert data["id"] != created["id"]
        assert data["metadata"]["name"] == "Copia"
        assert data["nodes"] == created["nodes"]

    def test_import_object_with_legacy_nodes(self, client):
        content = {
            "nodes": [
                {"id": "start", "type": "Start", "title": "Inicio"},
                {"id": "status", "type": "Status", "title": "Estado"},
            ],
            "edges": [{"id": "e1", "from": "start", "to": "status"}],
        }

        response = client.post("/api/workflows/import", json={"content": content})

        assert response.status_code == 201
        assert response.json()["nodes"][1]["type"] == "FlagChange"

    def test_import_invalid_json(self, client):
        response = client.post("/api/workflows/import", json={"content": "{oops"})

        assert response.status_code == 400
        assert response.json()["detail"].startswith("Error al parsear JSON")

    def test_import_missing_edges(self, client):
        response = client.post("/api/workflows/import", json={"content": json.dumps({"nodes": []})})

        assert response.status_code == 400
        assert response.json()["detail"] == 'Formato inválido: falta el array "edges"'
        assert client.get("/api/workflows").json() == []

    def test_import_into_existing(self, client):
        created = create_workflow(client)
        content = publishable_graph("s1")

        response = client.post(
            "/api/workflows/import", json={"content": content, "workflowId": created["id"]}
        )

        assert response.status_code == 201
        assert response.json()["id"] == created["id"]
        assert len(response.json()["nodes"]) == 3

    def test_import_into_missing(self, client):
        response = client.post(
            "/api/workflows/import",
            json={"content": {"nodes": [], "edges": []}, "workflowId": "wf_missing"},
        )

        assert response.status_code == 404

    def test_export_missing(self, client):
        assert client.get("/api/workflows/wf_missing/export").status_code == 404


class TestValidateAndPublish:
    def test_validate_stored_workflow(self, client):
        created = create_workflow(client)

        response = client.post(f"/api/workflows/{created['id']}/validate")

        assert response.status_code == 200
        assert response.json()["summary"]["isPublishable"] is False

    def test_publish_refused(self, client):
        created = create_workflow(client)

        response = client.post(f"/api/workflows/{created['id']}/publish")

        assert response.status_code == 422
        detail = response.json()["detail"]
        assert detail["code"] == "workflow_invalid"
        assert detail["message"] == "Workflow has 1 validation error(s)"
        assert {finding["severity"] for finding in detail["errors"]} == {"error", "warning"}
        assert client.get(f"/api/workflows/{created['id']}").json()["status"] == "draft"

    def test_publish(self, client):
        created = create_workflow(client)
        start_id = created["nodes"][0]["id"]
        client.put(f"/api/workflows/{created['id']}", json=publishable_graph(start_id))

        response = client.post(f"/api/workflows/{created['id']}/publish")

        assert response.status_code == 200
        assert response.json()["workflow"]["status"] == "published"
        assert response.json()["warnings"] == []
        assert client.get(f"/api/workflows/{created['id']}").json()["status"] == "published"

    def test_publish_missing(self, client):
        assert client.post("/api/workflows/wf_missing/publish").status_code == 404


class TestHealth:
    def test_root_health(self, client):
        data = client.get("/health").json()

        assert data["status"] == "healthy"
        assert data["app_name"] == settings.app_name

    def test_api_health_and_version(self, client):
        assert client.get("/api/health/").json()["status"] == "healthy"
        assert "version" in client.get("/api/health/version").json()
