"""Editor API tests (stateless graph helpers)"""


def node(node_id, node_type, title=None, **extra):
    payload = {"id": node_id, "type": node_type, "title": title or node_id}
    payload.update(extra)
    return payload


def edge(edge_id, source, target, **extra):
    payload = {"id": edge_id, "from": source, "to": target}
    payload.update(extra)
    return payload


RETRY_GRAPH = {
    "nodes": [
        node("start", "Start"),
        node("cp", "Checkpoint", "Control"),
        node("form", "Form", "Solicitud", roles=["Solicitante"], config={"formId": "f-1"}),
        node("reject", "Reject", "Rechazo", config={"allowRetry": True}),
    ],
    "edges": [
        edge("e1", "start", "cp"),
        edge("e2", "cp", "form"),
        edge("e3", "form", "reject"),
    ],
}


class TestValidateGraph:
    def test_returns_findings_and_summary(self, client):
        response = client.post(
            "/api/editor/validate",
            json={"nodes": [node("start", "Start", "Inicio")], "edges": []},
        )

        assert response.status_code == 200
        data = response.json()
        assert data["summary"] == {"errors": 1, "warnings": 1, "isPublishable": False}
        messages = [finding["message"] for finding in data["findings"]]
        assert "El flujo debe tener al menos un nodo de finalización (Fin o Rechazado)" in messages
        warning = next(f for f in data["findings"] if f["severity"] == "warning")
        assert warning["nodeId"] == "start"

    def test_legacy_nodes_are_accepted(self, client):
        response = client.post(
            "/api/editor/validate",
            json={
                "nodes": [node("start", "Start"), node("ok", "Approve")],
                "edges": [edge("e1", "start", "ok")],
            },
        )

        assert response.status_code == 200
        assert response.json()["summary"]["errors"] == 0

    def test_unknown_node_type(self, client):
        response = client.post(
            "/api/editor/validate", json={"nodes": [node("x", "Teleport")], "edges": []}
        )

        assert response.status_code == 400
        assert "unknown node type" in response.json()["detail"]


class TestCheckConnection:
    def test_allowed(self, client):
        payload = {
            "nodes": [node("start", "Start"), node("end", "End")],
            "edges": [],
            "sourceId": "start",
            "targetId": "end",
        }

        response = client.post("/api/editor/connections/check", json=payload)

        assert response.status_code == 200
        assert response.json() == {"allowed": True, "reason": None}

    def test_start_cannot_receive(self, client):
        payload = {
            "nodes": [node("start", "Start", "Inicio"), node("form", "Form")],
            "edges": [],
            "sourceId": "form",
            "targetId": "start",
        }

        data = client.post("/api/editor/connections/check", json=payload).json()

        assert data["allowed"] is False
        assert "(inicio)" in data["reason"]

    def test_retry_kind_into_occupied_checkpoint(self, client):
        payload = {**RETRY_GRAPH, "sourceId": "reject", "targetId": "cp"}

        normal = client.post("/api/editor/connections/check", json=payload).json()
        retry = client.post(
            "/api/editor/connections/check", json={**payload, "kind": "retry"}
        ).json()

        assert normal["allowed"] is False
        assert retry["allowed"] is True

    def test_missing_node(self, client):
        payload = {"nodes": [node("start", "Start")], "edges": [], "sourceId": "start", "targetId": "x"}

        response = client.post("/api/editor/connections/check", json=payload)

        assert response.status_code == 404

    def test_unknown_port_and_kind(self, client):
        payload = {
            "nodes": [node("start", "Start"), node("end", "End")],
            "edges": [],
            "sourceId": "start",
            "targetId": "end",
        }

        bad_port = client.post(
            "/api/editor/connections/check", json={**payload, "fromPort": "left"}
        )
        bad_kind = client.post("/api/editor/connections/check", json={**payload, "kind": "loop"})

        assert bad_port.status_code == 400
        assert bad_kind.status_code == 400


class TestNearestCheckpoint:
    def test_nearest(self, client):
        response = client.post(
            "/api/editor/checkpoints/nearest", json={**RETRY_GRAPH, "nodeId": "reject"}
        )

        assert response.status_code == 200
        assert response.json() == {"checkpointId": "cp", "checkpointIds": ["cp"]}

    def test_none(self, client):
        response = client.post(
            "/api/editor/checkpoints/nearest", json={**RETRY_GRAPH, "nodeId": "start"}
        )

        assert response.json() == {"checkpointId": None, "checkpointIds": []}


class TestClipboard:
    def test_copy_skips_start_and_outside_edges(self, client):
        response = client.post(
            "/api/editor/clipboard/copy",
            json={**RETRY_GRAPH, "selectedNodeIds": ["start", "cp", "form"]},
        )

        assert response.status_code == 200
        selection = response.json()["selection"]
        assert [n["id"] for n in selection["nodes"]] == ["cp", "form"]
        assert [(e["from"], e["to"]) for e in selection["edges"]] == [("cp", "form")]

    def test_copy_nothing(self, client):
        response = client.post(
            "/api/editor/clipboard/copy", json={**RETRY_GRAPH, "selectedNodeIds": ["start"]}
        )

        assert response.json() == {"selection": None}

    def test_paste_regenerates_ids_and_offsets(self, client):
        selection = {
            "nodes": [
                node("cp", "Checkpoint", position={"x": 0, "y": 0}),
                node("form", "Form", position={"x": 0, "y": 100}),
            ],
            "edges": [edge("e2", "cp", "form")],
        }

        response = client.post(
            "/api/editor/clipboard/paste",
            json={"selection": selection, "existingNodes": [], "offset": {"x": 10, "y": 20}},
        )

        assert response.status_code == 200
        data = response.json()
        ids = [n["id"] for n in data["nodes"]]
        assert "cp" not in ids and "form" not in ids
        assert [n["position"] for n in data["nodes"]] == [{"x": 10, "y": 20}, {"x": 10, "y": 120}]
        assert data["edges"][0]["from"] == ids[0]
        assert data["edges"][0]["to"] == ids[1]

    def test_paste_disables_retry_without_checkpoint(self, client):
        selection = {"nodes": [node("reject", "Reject", config={"allowRetry": True})], "edges": []}

        data = client.post("/api/editor/clipboard/paste", json={"selection": selection}).json()

        assert data["nodes"][0]["config"]["allowRetry"] is False
